"""Shared fixtures: throwaway merchant PKI and a scripted Swish transport."""

import datetime as dt
import json
import random

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from swish_connect.swish.client import SwishClient
from swish_connect.swish.ids import RequestIdGenerator

BASE_URL = "https://mss.example.test/swish-cpcapi/api/v2"
PASSPHRASE = "swish"


@pytest.fixture(scope="session")
def merchant_pki():
    """Self-signed certificate plus passphrase-protected key, PEM encoded."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "1234679304")])
    now = dt.datetime.now(dt.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - dt.timedelta(days=1))
        .not_valid_after(now + dt.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return {
        "cert": cert.public_bytes(serialization.Encoding.PEM),
        "key": key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.BestAvailableEncryption(PASSPHRASE.encode()),
        ),
        "passphrase": PASSPHRASE,
    }


class FakeSwish:
    """
    Scripted stand-in for the Swish API behind httpx.MockTransport.
    `routes` maps (method, url) to responses (or exceptions) served in order;
    the last one keeps being served once the queue is drained.
    """

    def __init__(self):
        self.routes = {}
        self.last = {}
        self.requests = []

    def add(self, method, url, *responses):
        self.routes.setdefault((method, url), []).extend(responses)

    def add_put(self, *responses):
        # any PUT; its url carries the generated id
        self.routes.setdefault(("PUT", None), []).extend(responses)

    def calls(self, method, url=None):
        return [r for r in self.requests if r.method == method and (url is None or str(r.url) == url)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, str(request.url))
        if request.method == "PUT" and key not in self.routes:
            key = ("PUT", None)
        queue = self.routes.get(key)
        if queue:
            item = self.last[key] = queue.pop(0)
        elif key in self.last:
            # the last scripted answer repeats once the queue is drained
            item = self.last[key]
        else:
            return httpx.Response(404, json=[{"errorCode": "NOT_FOUND", "errorMessage": "no route"}])
        if isinstance(item, Exception):
            raise item
        # fresh copy so a queued response can be served more than once
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)


@pytest.fixture
def fake_swish():
    return FakeSwish()


@pytest.fixture
def swish_client(fake_swish):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_swish.handler))
    return SwishClient(
        base_url=BASE_URL,
        id_generator=RequestIdGenerator(random.Random(1234)),
        http_client=http,
    )


def swish_body(request_id, status="CREATED", **overrides):
    body = {
        "id": request_id,
        "payeePaymentReference": "0123456789",
        "paymentReference": None,
        "callbackUrl": "https://example.com/api/swishcb/paymentrequests",
        "payerAlias": None,
        "payeeAlias": "1234679304",
        "amount": 100.0,
        "currency": "SEK",
        "message": "Kingston USB Flash Drive 8 GB",
        "status": status,
        "dateCreated": "2019-01-02T14:29:51.092Z",
        "datePaid": None,
        "errorCode": None,
        "errorMessage": None,
    }
    body.update(overrides)
    return httpx.Response(200, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})
