"""Shared fixtures: a server setup and helpers running whole flows."""

import pytest

from opaque_pake.client import (
    client_login_finish, client_login_start, client_registration_finish,
    client_registration_start,
)
from opaque_pake.server import (
    server_login_finish, server_login_start, server_registration_finish,
    server_registration_start, server_setup,
)


PASSWORD = b"password"
CLIENT_ID = b"client"
SERVER_ID = b"server"
CONTEXT = b"context"


@pytest.fixture(scope="session")
def setup():
    return server_setup()


@pytest.fixture
def register(setup):
    """Run registration; returns (password_file, export_key)."""
    def _register(password=PASSWORD, credential_identifier=CLIENT_ID,
                  client_identifier=CLIENT_ID, server_identifier=SERVER_ID, ksf=None):
        start = client_registration_start(password)
        response = server_registration_start(setup, start.registration_request, credential_identifier)
        finish = client_registration_finish(
            password, start.client_registration, response,
            client_identifier=client_identifier, server_identifier=server_identifier, ksf=ksf,
        )
        return server_registration_finish(finish.registration_upload), finish.export_key
    return _register


@pytest.fixture
def login_start(setup):
    """Run the first two login steps; returns (client_start, server_start)."""
    def _login_start(password_file, password=PASSWORD, credential_identifier=CLIENT_ID,
                     context=CONTEXT, client_identifier=CLIENT_ID, server_identifier=SERVER_ID):
        client_start = client_login_start(password)
        server_start = server_login_start(
            setup, password_file, client_start.credential_request, credential_identifier,
            context=context, client_identifier=client_identifier, server_identifier=server_identifier,
        )
        return client_start, server_start
    return _login_start


@pytest.fixture
def login(login_start):
    """Run a whole login; returns (client_finish_result, server_session_key).

    Both sides use the same context and identifiers unless `server_view`
    overrides what the server is given.
    """
    def _login(password_file, password=PASSWORD, context=CONTEXT, client_identifier=CLIENT_ID,
               server_identifier=SERVER_ID, credential_identifier=CLIENT_ID, ksf=None,
               server_view=None):
        server_args = dict(
            context=context, client_identifier=client_identifier, server_identifier=server_identifier,
        )
        server_args.update(server_view or {})
        client_start, server_start = login_start(
            password_file, password=password, credential_identifier=credential_identifier, **server_args
        )
        client_finish = client_login_finish(
            server_start.credential_response, client_start.client_login, password,
            context=context, client_identifier=client_identifier,
            server_identifier=server_identifier, ksf=ksf,
        )
        session_key = server_login_finish(server_start.server_login, client_finish.credential_finalization)
        return client_finish, session_key
    return _login
