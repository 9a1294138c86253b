"""Store a secret larger than one platform entry and read it back."""

from chunked_keyring import Entry, chunks_needed, max_chunk_size


def main() -> None:
    chunk_size = max_chunk_size()
    print(f"Platform chunk size: {chunk_size} bytes")

    secret_size = chunk_size * 3 + 500
    large_secret = bytes(i % 256 for i in range(secret_size))
    print(f"Storing secret of {secret_size} bytes ({chunks_needed(secret_size)} parts)")

    entry = Entry("chunked-keyring-example", "large-secret-user")

    entry.set_secret(large_secret)
    print("Secret stored.")

    retrieved = entry.get_secret()
    print(f"Secret retrieved: {len(retrieved)} bytes")

    if retrieved != large_secret:
        raise SystemExit("Integrity check failed!")
    print("Integrity verified!")

    entry.delete_credential()
    print("Credential deleted.")


if __name__ == "__main__":
    main()
