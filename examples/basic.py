"""Store, read back and delete a password."""

from chunked_keyring import Entry


def main() -> None:
    entry = Entry("chunked-keyring-example", "basic-user")

    entry.set_password("my-secret-password")
    print("Password stored.")

    password = entry.get_password()
    print(f"Password retrieved: {password}")

    entry.delete_credential()
    print("Credential deleted.")


if __name__ == "__main__":
    main()
