"""Pydantic models: wire messages, opaque flow states and result records.

Every message has a fixed-layout byte encoding; `serialize` concatenates the
fields in declaration order and `deserialize` slices them back, validating
lengths, group elements and scalars.
"""

from typing import Annotated, ClassVar, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from opaque_pake.common.errors import MalformedMessageError
from opaque_pake.crypto.envelope import ENVELOPE_LENGTH, NONCE_LENGTH
from opaque_pake.crypto.group import (
    ELEMENT_LENGTH, SCALAR_LENGTH, deserialize_element, deserialize_scalar,
)
from opaque_pake.crypto.kdf import HASH_LENGTH, KEY_LENGTH, MAC_LENGTH


def _fixed(length: int, secret: bool = False):
    return Annotated[bytes, Field(min_length=length, max_length=length, repr=not secret)]


Element = _fixed(ELEMENT_LENGTH)
Scalar = _fixed(SCALAR_LENGTH, secret=True)
Nonce = _fixed(NONCE_LENGTH)
Mac = _fixed(MAC_LENGTH, secret=True)
SecretKey = _fixed(KEY_LENGTH, secret=True)
Seed = _fixed(HASH_LENGTH, secret=True)
Envelope = _fixed(ENVELOPE_LENGTH)

MASKED_RESPONSE_LENGTH = ELEMENT_LENGTH + ENVELOPE_LENGTH


class Message(BaseModel):
    """Fixed-layout binary message.

    Subclasses list their fields in `LAYOUT` as (name, length) or
    (name, Message subclass) pairs.
    """
    model_config = ConfigDict(frozen=True)

    KIND: ClassVar[str] = "message"
    LAYOUT: ClassVar[Tuple[Tuple[str, Union[int, type]], ...]] = ()
    ELEMENTS: ClassVar[Tuple[str, ...]] = ()
    SCALARS: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def length(cls) -> int:
        return sum(entry if isinstance(entry, int) else entry.length() for _, entry in cls.LAYOUT)

    def serialize(self) -> bytes:
        parts = []
        for name, entry in self.LAYOUT:
            value = getattr(self, name)
            parts.append(value if isinstance(entry, int) else value.serialize())
        return b"".join(parts)

    @classmethod
    def deserialize(cls, data: bytes):
        """
        Parse the fixed layout.

        Raises:
            MalformedMessageError: wrong length, invalid element or scalar
        """
        if not isinstance(data, (bytes, bytearray)) or len(data) != cls.length():
            raise MalformedMessageError(cls.KIND)
        data = bytes(data)
        fields = {}
        offset = 0
        for name, entry in cls.LAYOUT:
            size = entry if isinstance(entry, int) else entry.length()
            chunk = data[offset:offset + size]
            fields[name] = chunk if isinstance(entry, int) else entry.deserialize(chunk)
            offset += size

        for name in cls.ELEMENTS:
            deserialize_element(fields[name], cls.KIND)
        for name in cls.SCALARS:
            deserialize_scalar(fields[name], cls.KIND)

        try:
            return cls(**fields)
        except ValidationError:
            raise MalformedMessageError(cls.KIND) from None


class ServerSetup(Message):
    """Long-term server secrets. Never leaves the server."""
    KIND: ClassVar[str] = "server setup"
    LAYOUT: ClassVar = (
        ("oprf_seed", HASH_LENGTH),
        ("server_private_key", SCALAR_LENGTH),
        ("fake_seed", HASH_LENGTH),
    )
    SCALARS: ClassVar = ("server_private_key",)

    oprf_seed: Seed
    server_private_key: Scalar
    fake_seed: Seed


# --- registration ---

class RegistrationRequest(Message):
    KIND: ClassVar[str] = "registration request"
    LAYOUT: ClassVar = (("blinded_element", ELEMENT_LENGTH),)
    ELEMENTS: ClassVar = ("blinded_element",)

    blinded_element: Element


class RegistrationResponse(Message):
    KIND: ClassVar[str] = "registration response"
    LAYOUT: ClassVar = (
        ("evaluated_element", ELEMENT_LENGTH),
        ("server_public_key", ELEMENT_LENGTH),
    )
    ELEMENTS: ClassVar = ("evaluated_element", "server_public_key")

    evaluated_element: Element
    server_public_key: Element


class RegistrationUpload(Message):
    """Client upload; stored unchanged by the server as the password file."""
    KIND: ClassVar[str] = "registration upload"
    LAYOUT: ClassVar = (
        ("client_public_key", ELEMENT_LENGTH),
        ("masking_key", KEY_LENGTH),
        ("envelope", ENVELOPE_LENGTH),
    )
    ELEMENTS: ClassVar = ("client_public_key",)

    client_public_key: Element
    masking_key: SecretKey
    envelope: Envelope


PasswordFile = RegistrationUpload


class ClientRegistrationState(Message):
    KIND: ClassVar[str] = "client registration state"
    LAYOUT: ClassVar = (
        ("blind", SCALAR_LENGTH),
        ("blinded_element", ELEMENT_LENGTH),
    )
    ELEMENTS: ClassVar = ("blinded_element",)
    SCALARS: ClassVar = ("blind",)

    blind: Scalar
    blinded_element: Element


# --- login ---

class CredentialRequest(Message):
    KIND: ClassVar[str] = "credential request"
    LAYOUT: ClassVar = (("blinded_element", ELEMENT_LENGTH),)
    ELEMENTS: ClassVar = ("blinded_element",)

    blinded_element: Element


class AuthRequest(Message):
    KIND: ClassVar[str] = "auth request"
    LAYOUT: ClassVar = (
        ("client_nonce", NONCE_LENGTH),
        ("client_keyshare", ELEMENT_LENGTH),
    )
    ELEMENTS: ClassVar = ("client_keyshare",)

    client_nonce: Nonce
    client_keyshare: Element


class KE1(Message):
    KIND: ClassVar[str] = "credential request"
    LAYOUT: ClassVar = (
        ("credential_request", CredentialRequest),
        ("auth_request", AuthRequest),
    )

    credential_request: CredentialRequest
    auth_request: AuthRequest


class ClientLoginState(Message):
    KIND: ClassVar[str] = "client login state"
    LAYOUT: ClassVar = (
        ("blind", SCALAR_LENGTH),
        ("client_secret", SCALAR_LENGTH),
        ("ke1", KE1),
    )
    SCALARS: ClassVar = ("blind", "client_secret")

    blind: Scalar
    client_secret: Scalar
    ke1: KE1


class CredentialResponse(Message):
    KIND: ClassVar[str] = "credential response"
    LAYOUT: ClassVar = (
        ("evaluated_element", ELEMENT_LENGTH),
        ("masking_nonce", NONCE_LENGTH),
        ("masked_response", MASKED_RESPONSE_LENGTH),
    )
    ELEMENTS: ClassVar = ("evaluated_element",)

    evaluated_element: Element
    masking_nonce: Nonce
    masked_response: _fixed(MASKED_RESPONSE_LENGTH)


class AuthResponse(Message):
    KIND: ClassVar[str] = "auth response"
    LAYOUT: ClassVar = (
        ("server_nonce", NONCE_LENGTH),
        ("server_keyshare", ELEMENT_LENGTH),
        ("server_mac", MAC_LENGTH),
    )
    ELEMENTS: ClassVar = ("server_keyshare",)

    server_nonce: Nonce
    server_keyshare: Element
    server_mac: _fixed(MAC_LENGTH)


class KE2(Message):
    KIND: ClassVar[str] = "credential response"
    LAYOUT: ClassVar = (
        ("credential_response", CredentialResponse),
        ("auth_response", AuthResponse),
    )

    credential_response: CredentialResponse
    auth_response: AuthResponse


class KE3(Message):
    KIND: ClassVar[str] = "credential finalization"
    LAYOUT: ClassVar = (("client_mac", MAC_LENGTH),)

    client_mac: _fixed(MAC_LENGTH)


class ServerLoginState(Message):
    KIND: ClassVar[str] = "server login state"
    LAYOUT: ClassVar = (
        ("expected_client_mac", MAC_LENGTH),
        ("session_key", KEY_LENGTH),
    )

    expected_client_mac: Mac
    session_key: SecretKey


# --- results handed back to callers ---

class ClientRegistrationStartResult(BaseModel):
    registration_request: bytes
    client_registration: bytes = Field(repr=False)


class ClientRegistrationFinishResult(BaseModel):
    registration_upload: bytes
    export_key: bytes = Field(repr=False)


class ClientLoginStartResult(BaseModel):
    credential_request: bytes
    client_login: bytes = Field(repr=False)


class ClientLoginFinishResult(BaseModel):
    credential_finalization: bytes
    session_key: bytes = Field(repr=False)
    export_key: bytes = Field(repr=False)


class ServerLoginStartResult(BaseModel):
    credential_response: bytes
    server_login: bytes = Field(repr=False)
