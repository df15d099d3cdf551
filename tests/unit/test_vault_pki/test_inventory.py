"""
Unit tests for the certificate inventory.
"""

import pytest

from vault_pki.exceptions import IssuanceError
from vault_pki.inventory import CertificateInventory
from vault_pki.schemas import CertificateRecord


class TestListAll:
    """Tests for CertificateInventory.list_all."""

    def test_pairs_each_certificate_with_chain(self, client):
        records = CertificateInventory(client).list_all()
        assert records == [
            CertificateRecord(certificate="CERT_A", chain=["CHAIN"]),
            CertificateRecord(certificate="CERT_B", chain=["CHAIN"]),
        ]

    def test_order_follows_serials(self, client, vault):
        vault.serials = ["b", "a"]
        records = CertificateInventory(client, max_workers=1).list_all()
        assert [r.certificate for r in records] == ["CERT_B", "CERT_A"]

    def test_fetches_chain_once(self, client, vault):
        CertificateInventory(client).list_all()
        chain_requests = [r for r in vault.requests if r.url.path.endswith("/ca_chain")]
        assert len(chain_requests) == 1

    def test_single_failure_fails_everything(self, client, vault):
        vault.failing_serials = {"b"}
        with pytest.raises(IssuanceError):
            CertificateInventory(client).list_all()

    def test_empty_mount(self, client, vault):
        vault.serials = []
        assert CertificateInventory(client).list_all() == []

    def test_client_list_wrapper(self, client):
        assert [r.certificate for r in client.list()] == ["CERT_A", "CERT_B"]


class TestGet:
    def test_get_one(self, client):
        record = CertificateInventory(client).get("a")
        assert record.certificate == "CERT_A"
        assert record.chain == ["CHAIN"]
