"""Deleting a credential is safe whether or not it exists."""

from chunked_keyring import Entry


def main() -> None:
    entry = Entry("chunked-keyring-example", "idempotent-user")

    entry.delete_credential()
    print("First delete (nothing existed): OK")

    entry.set_password("temporary")
    print("Password stored.")

    entry.delete_credential()
    print("Second delete (removed credential): OK")

    entry.delete_credential()
    print("Third delete (already gone): OK")


if __name__ == "__main__":
    main()
