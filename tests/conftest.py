"""
Test Configuration and Fixtures
"""
import base64
import json
import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="flashcards-logs-"))

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from src.config import Settings
from src.server.app import create_app


def make_pdf(page_texts):
    """
    Build a minimal text PDF in memory, one page per entry in page_texts.
    """
    n = len(page_texts)
    page_ids = [4 + 2 * i for i in range(n)]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {n} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for pid, text in zip(page_ids, page_texts):
        content = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
            ).encode()
        )
        objects.append(
            b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def cards_payload(n, key="flashcards"):
    return {key: [{"question": f"Question {i}?", "answer": f"Answer {i}."} for i in range(1, n + 1)]}


class FakeChatModel:
    """Stands in for the OpenAI chat model; records every call."""

    def __init__(self, payload=None, content=None, error=None):
        self.payload = payload if payload is not None else cards_payload(10)
        self.content = content
        self.error = error
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        content = self.content if self.content is not None else json.dumps(self.payload)
        return AIMessage(content=content)


@pytest.fixture
def settings():
    return Settings(_env_file=None, OPENAI_API_KEY="sk-test", REQUEST_TIMEOUT=50)


@pytest.fixture
def fake_llm():
    return FakeChatModel()


@pytest.fixture
def client(settings, fake_llm):
    """Create test client backed by the fake chat model"""
    return TestClient(create_app(settings, llm=fake_llm))


@pytest.fixture
def sample_pdf():
    return make_pdf(["Photosynthesis converts light into chemical energy", "Mitochondria produce ATP"])
