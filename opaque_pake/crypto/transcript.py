"""Append-only handshake transcript (the 3DH preamble) + transcript hash."""

from typing import List

from opaque_pake.common.utils import len_prefixed
from opaque_pake.crypto.kdf import hash_bytes


PROTOCOL_LABEL = b"OPAQUEv1-"


class Transcript:
    """Ordered record of everything bound into the session keys."""

    def __init__(self, context: bytes = b""):
        """
        Start a transcript.

        Args:
            context: application-specific bytes shared by both parties
        """
        self.entries: List[bytes] = [PROTOCOL_LABEL, len_prefixed(context)]

    def add_identity(self, identity: bytes):
        self.entries.append(len_prefixed(identity))

    def add_message(self, data: bytes):
        self.entries.append(data)

    def preamble(self) -> bytes:
        return b"".join(self.entries)

    def compute_transcript_hash(self) -> bytes:
        return hash_bytes(self.preamble())

    def compute_hash_with(self, suffix: bytes) -> bytes:
        """Hash of the preamble followed by suffix, without recording suffix."""
        return hash_bytes(self.preamble() + suffix)

    @classmethod
    def for_handshake(
        cls,
        context: bytes,
        client_identity: bytes,
        ke1: bytes,
        server_identity: bytes,
        credential_response: bytes,
        server_nonce: bytes,
        server_keyshare: bytes,
    ) -> "Transcript":
        """Build the preamble in the fixed order both parties use."""
        transcript = cls(context)
        transcript.add_identity(client_identity)
        transcript.add_message(ke1)
        transcript.add_identity(server_identity)
        transcript.add_message(credential_response)
        transcript.add_message(server_nonce)
        transcript.add_message(server_keyshare)
        return transcript
