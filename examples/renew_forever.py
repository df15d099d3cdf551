"""
Keep a certificate for api.example.org renewed and print every update.

Reads VAULT_PKI_ADDRESS and VAULT_PKI_TOKEN from the environment (or .env).
"""

import time

from vault_pki import VaultPKIClient
from vault_pki.logging import configure_logging


def on_update(error, credential):
    if error is not None:
        print(f"renewal failed: {error}")
        return
    print(f"{credential.serial}: valid for {credential.expires_in}s")


def main():
    configure_logging(level="DEBUG")
    client = VaultPKIClient(mountpoint="pki-api")
    handle = client.issue_and_renew("api", "api.example.org", 60, None, on_update)
    try:
        while handle.is_alive():
            time.sleep(1)
    except KeyboardInterrupt:
        handle.cancel()
        handle.join()
    finally:
        client.close()


if __name__ == "__main__":
    main()
