"""Mock HTTP server using Flask.

Serves canned responses keyed by request shape and records every GET and
POST it receives so tests can inspect them afterwards.
"""

import logging
import socket
import threading
from abc import ABC, abstractmethod
from typing import Optional, TypeVar

from flask import Flask, Response, abort, request
from werkzeug.serving import BaseWSGIServer, make_server, select_address_family

from ..core.config import MockServerConfig
from ..core.errors import MultipartFileError, ServerStateError
from ..core.models import CannedResponse, CapturedRequest, RequestMethod
from .keys import (
    FILE_FIELD,
    decode_content,
    extract_file,
    get_request_key,
    post_request_key,
    raw_query,
)

logger = logging.getLogger(__name__)

ALLOWED_METHODS = [RequestMethod.GET.value, RequestMethod.POST.value]

S = TypeVar("S", bound="Server")


class Server(ABC):
    """Interface of a server that answers HTTP requests with canned responses.

    Test code can depend on this type and substitute a fake for the real
    :class:`MockServer`.
    """

    @abstractmethod
    def open(self) -> None:
        """Start serving."""

    @abstractmethod
    def close(self) -> None:
        """Stop serving. A no-op when never opened or already closed."""

    @abstractmethod
    def reset(self) -> None:
        """Clear all captured requests and configured responses.

        Call between tests so they cannot affect each other.
        """

    @abstractmethod
    def set_get_response_body(self, key: str, body: str) -> None:
        """Serve ``body`` as a 200 JSON response for GETs matching ``key``.

        ``key`` has the form ``path?query``.
        """

    @abstractmethod
    def set_post_response_body(self, key: str, body: str) -> None:
        """Serve ``body`` as a 200 JSON response for POSTs matching ``key``.

        ``key`` has the form ``path?query content`` where content is the
        multipart file field named ``file``.
        """

    @abstractmethod
    def get_get_requests(self, key: str) -> list[CapturedRequest]:
        """Return GET requests recorded under ``key`` in arrival order."""

    @abstractmethod
    def get_post_requests(self, key: str) -> list[CapturedRequest]:
        """Return POST requests recorded under ``key`` in arrival order."""

    @abstractmethod
    def url(self) -> str:
        """Return the base URL the server can be reached at."""

    def __enter__(self: S) -> S:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MockServer(Server):
    """Mock HTTP server for stubbing an external dependency in tests.

    Features:
    - Canned responses keyed by ``path?query`` (GET) or
      ``path?query content`` (POST with a multipart ``file`` field)
    - Every request recorded in arrival order under its key
    - Ephemeral port, background serving thread
    - One lock guarding all captured and configured state
    """

    def __init__(self, config: Optional[MockServerConfig] = None):
        """Initialize the mock server.

        Args:
            config: Listener configuration.
        """
        self.config = config or MockServerConfig()
        self.app = Flask(__name__)
        self.app.url_map.strict_slashes = False
        self.app.url_map.merge_slashes = False

        self._lock = threading.Lock()
        self._get_requests: dict[str, list[CapturedRequest]] = {}
        self._get_responses: dict[str, CannedResponse] = {}
        self._post_requests: dict[str, list[CapturedRequest]] = {}
        self._post_responses: dict[str, CannedResponse] = {}

        self._setup_routes()

        self._server: Optional[BaseWSGIServer] = None
        self._server_thread: Optional[threading.Thread] = None
        self._url: Optional[str] = None

    def _setup_routes(self) -> None:
        """Set up the catch-all Flask route."""

        @self.app.route(
            "/",
            defaults={"path": ""},
            methods=ALLOWED_METHODS,
            provide_automatic_options=False,
        )
        @self.app.route(
            "/<path:path>",
            methods=ALLOWED_METHODS,
            provide_automatic_options=False,
        )
        def handle_request(path: str):
            if request.method == RequestMethod.GET.value:
                return self._handle_get_request()
            if request.method == RequestMethod.POST.value:
                return self._handle_post_request()
            # HEAD is routed here automatically alongside GET
            abort(405, valid_methods=ALLOWED_METHODS)

        @self.app.errorhandler(MultipartFileError)
        def handle_multipart_error(error: MultipartFileError):
            logger.warning(
                f"Rejected POST {request.path}: field {error.field_name!r}: {error.message}"
            )
            return Response(f"{error.message}\n", status=500, mimetype="text/plain")

    def _handle_get_request(self) -> Response:
        key = get_request_key(request.path, raw_query(request))
        captured = self._capture(key, RequestMethod.GET)

        with self._lock:
            self._get_requests.setdefault(key, []).append(captured)
            response = self._get_responses.get(key)

        logger.debug(f"Recorded GET {key!r}")
        if response is None:
            logger.warning(f"No GET response configured for {key!r}")
            return self._not_found(f"No httpGETResponse for '{key}'")
        return self._write(response)

    def _handle_post_request(self) -> Response:
        # Cache the raw body so it is still readable after multipart parsing
        request.get_data(cache=True, parse_form_data=False)
        file_name, content = extract_file(request, FILE_FIELD)

        key = post_request_key(request.path, raw_query(request), decode_content(content))
        captured = self._capture(
            key,
            RequestMethod.POST,
            file_name=file_name,
            file_content=content,
        )

        with self._lock:
            self._post_requests.setdefault(key, []).append(captured)
            response = self._post_responses.get(key)

        logger.debug(f"Recorded POST {key!r}")
        if response is None:
            logger.warning(f"No POST response configured for {key!r}")
            return self._not_found(f"No httpPOSTResponse for '{key}'")
        return self._write(response)

    def _capture(
        self,
        key: str,
        method: RequestMethod,
        file_name: Optional[str] = None,
        file_content: Optional[bytes] = None,
    ) -> CapturedRequest:
        """Snapshot the current Flask request.

        Args:
            key: Key the request is recorded under.
            method: Request method.
            file_name: Client file name of the uploaded file, if any.
            file_content: Uploaded file content, if any.

        Returns:
            Captured request.
        """
        form = request.form.to_dict(flat=False) if method is RequestMethod.POST else {}
        return CapturedRequest(
            key=key,
            method=method,
            path=request.path,
            query_string=raw_query(request),
            headers=dict(request.headers),
            data=request.get_data(cache=True, parse_form_data=False),
            form=form,
            file_name=file_name,
            file_content=file_content,
            remote_addr=request.remote_addr,
        )

    @staticmethod
    def _write(response: CannedResponse) -> Response:
        # Headers and status go out together
        return Response(
            response.body,
            status=response.status_code,
            content_type=response.content_type,
        )

    @staticmethod
    def _not_found(message: str) -> Response:
        return Response(message, status=404, mimetype="text/plain")

    def open(self) -> None:
        """Bind an ephemeral local port and start serving in the background.

        Raises:
            ServerStateError: If the server is already open.
            OSError: If the address cannot be bound.
        """
        if self._server is not None:
            raise ServerStateError("mock server is already open")

        # Bind ourselves so bind failures surface as OSError
        sock = socket.create_server(
            (self.config.host, self.config.port),
            family=select_address_family(self.config.host, self.config.port),
        )
        try:
            server = make_server(
                self.config.host,
                sock.getsockname()[1],
                self.app,
                threaded=self.config.threaded,
                fd=sock.fileno(),
            )
        finally:
            sock.close()

        port = server.server_address[1]
        self._server = server
        self._url = f"{self.config.scheme}://{self.config.host}:{port}"
        self._server_thread = threading.Thread(
            target=server.serve_forever,
            name=f"cannedhttp-{port}",
            daemon=True,
        )
        self._server_thread.start()
        logger.info(f"Mock server started at {self._url}")

    def close(self) -> None:
        """Stop the mock server.

        Safe to call when the server was never opened or is already closed.
        """
        server, thread = self._server, self._server_thread
        if server is None:
            return

        self._server = None
        self._server_thread = None
        url, self._url = self._url, None
        try:
            server.shutdown()
            server.server_close()
            if thread is not None:
                thread.join(timeout=self.config.shutdown_timeout)
        except Exception:
            logger.exception(f"Error while stopping mock server at {url}")
            return
        logger.info(f"Mock server at {url} stopped")

    def reset(self) -> None:
        """Discard all configured responses and captured requests."""
        with self._lock:
            self._get_responses = {}
            self._post_responses = {}
            self._get_requests = {}
            self._post_requests = {}
        logger.debug("Mock server state reset")

    def set_get_response_body(self, key: str, body: str) -> None:
        """Register the GET response for a key.

        Args:
            key: ``path?query``.
            body: JSON body served with status 200.
        """
        with self._lock:
            self._get_responses[key] = CannedResponse(body=body)
        logger.debug(f"Configured GET response for {key!r}")

    def set_post_response_body(self, key: str, body: str) -> None:
        """Register the POST response for a key.

        Args:
            key: ``path?query content``.
            body: JSON body served with status 200.
        """
        with self._lock:
            self._post_responses[key] = CannedResponse(body=body)
        logger.debug(f"Configured POST response for {key!r}")

    def get_get_requests(self, key: str) -> list[CapturedRequest]:
        with self._lock:
            return list(self._get_requests.get(key, []))

    def get_post_requests(self, key: str) -> list[CapturedRequest]:
        with self._lock:
            return list(self._post_requests.get(key, []))

    def url(self) -> str:
        """Get the server URL.

        Returns:
            Base URL such as ``http://127.0.0.1:54321``.

        Raises:
            ServerStateError: If the server is not open.
        """
        if self._url is None:
            raise ServerStateError("mock server is not open")
        return self._url

    @property
    def is_open(self) -> bool:
        """Whether the listener is running."""
        return self._server is not None
