"""
Inventory Service - Certificates on Record

Read-only listing of every certificate the mount has issued, each paired
with the mount's CA chain. All-or-nothing: one failed fetch fails the
whole listing.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, List

from .logging import get_logger
from .schemas import CertificateRecord

if TYPE_CHECKING:
    from .client import VaultPKIClient

logger = get_logger(__name__)

DEFAULT_MAX_WORKERS = 8


class CertificateInventory:
    """Certificate listing over a VaultPKIClient."""

    def __init__(self, client: "VaultPKIClient", max_workers: int = DEFAULT_MAX_WORKERS):
        self.client = client
        self.max_workers = max_workers

    def list_all(self) -> List[CertificateRecord]:
        """
        List all certificates on record.

        Returns:
            One record per serial, in the order Vault lists them

        Raises:
            IssuanceError: If any request fails; no partial result is returned
        """
        serials = self.client.list_serials()
        chain = self.client.get_chain()
        if not serials:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(serials))) as pool:
            certificates = list(pool.map(self.client.get_by_serial, serials))

        logger.info(f"Listed {len(certificates)} certificates")
        return [CertificateRecord(certificate=cert, chain=chain) for cert in certificates]

    def get(self, serial: str) -> CertificateRecord:
        """Fetch one certificate on record with the CA chain."""
        return CertificateRecord(
            certificate=self.client.get_by_serial(serial),
            chain=self.client.get_chain(),
        )
