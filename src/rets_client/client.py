from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, TypeVar, Union

import httpx

from .core.auth import Authenticator
from .core.config import (
    ClientConfig,
    OutputMode,
    RequestMethod,
    check_output_mode,
    load_env_config,
)
from .core.engine import TransactionEngine, engine_for
from .core.errors import LoginError, TransactionFailure
from .core.headers import USER_AGENT_HEADER
from .core.multipart import MultipartDecoder, is_multipart, resolve_extension
from .core.parsing import ParserRegistry, ResultParser
from .models import DataObject

T = TypeVar("T")

# Single-object GetObject bodies at or below this length are treated as an
# empty/error placeholder and dropped.
SINGLE_OBJECT_MIN_LENGTH = 100

METADATA_ACCEPT = "text/xml,text/plain;q=0.5"


class RetsClient:
    """
    RETS 1.x client session.
    - login() discovers capability URLs; the other transactions use them
    - Results come back in the configured output mode (Raw or Structured)
    - One transaction in flight at a time per client
    """

    def __init__(
        self,
        login_url: str,
        *,
        config: Optional[ClientConfig] = None,
        parsers: Optional[ParserRegistry] = None,
        authenticator: Optional[Authenticator] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.Client] = None,
    ):
        login_url = (login_url or "").strip()
        if not login_url:
            raise ValueError("login_url must be provided.")

        self.config = config if config is not None else ClientConfig()
        self.log = logger or logging.getLogger("rets_client.client")
        self.parsers = parsers if parsers is not None else ParserRegistry.default()
        # Fails early for modes without a parser.
        self.parsers.get(self.config.output)
        self._output = self.config.output
        self.mimemap: Dict[str, str] = dict(self.config.mimemap)

        engine_class = engine_for(self.config.rets_version)

        self._owns_http = http is None
        self.http = http or httpx.Client(timeout=self.config.timeout_seconds)

        self.engine: TransactionEngine = engine_class(
            login_url,
            config=self.config,
            http=self.http,
            authenticator=authenticator,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "RetsClient":
        login_url, _, _, user_agent = load_env_config()
        if user_agent and "config" not in kwargs:
            kwargs["config"] = ClientConfig(user_agent=user_agent)
        return cls(login_url, **kwargs)

    def close(self) -> None:
        self.engine.reset()
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "RetsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- Settings ---

    @property
    def output(self) -> OutputMode:
        return self._output

    @output.setter
    def output(self, output: OutputMode) -> None:
        output = check_output_mode(output)
        self.parsers.get(output)
        self._output = output

    def set_parser(
        self, mode: OutputMode, parser: ResultParser, force: bool = False
    ) -> None:
        try:
            self.parsers.register(mode, parser, force=force)
        except Exception:
            self.log.debug("rets.parser_rejected", extra={"error_type": type(parser).__name__})
            raise

    def get_parser(self, mode: Optional[OutputMode] = None) -> ResultParser:
        return self.parsers.get(mode if mode is not None else self._output)

    def get_header(self, name: str) -> Optional[str]:
        return self.engine.headers.get(name)

    def set_header(self, name: str, value: Optional[str]) -> None:
        self.engine.set_header(name, value)

    @property
    def user_agent(self) -> Optional[str]:
        return self.get_header(USER_AGENT_HEADER)

    @user_agent.setter
    def user_agent(self, value: str) -> None:
        self.set_header(USER_AGENT_HEADER, value)

    @property
    def request_method(self) -> RequestMethod:
        return self.engine.request_method

    @request_method.setter
    def request_method(self, method: Union[RequestMethod, str]) -> None:
        self.engine.request_method = RequestMethod(method)

    @property
    def rets_version(self) -> str:
        return self.engine.version.value

    @property
    def urls(self) -> Dict[str, str]:
        return self.engine.urls.as_dict()

    def parse(self, body: bytes, output: Optional[OutputMode] = None) -> Any:
        return self.parsers.parse(body, output if output is not None else self._output)

    # --- Transactions ---

    def login(
        self,
        username: str,
        password: str,
        then: Optional[Callable[[Any], T]] = None,
    ) -> Any:
        """
        Log in and discover capability URLs.
        - Without `then`, returns the login result in the configured output mode
        - With `then`, returns then(result); logout() runs on every exit path
        - The Action URL, when announced, is followed and its body attached
          as result.secondary_response
        """
        engine = self.engine
        engine.set_credentials(username, password)
        # Required by RETS 1.5.
        engine.set_header("Accept", "*/*")

        response = engine.request(engine.urls.login_url, transaction="Login")

        # Capability URLs can only be read from the structured result.
        results = self.parse(response.content, OutputMode.STRUCTURED)
        if not results.success():
            raise LoginError(
                status_code=response.status_code,
                http_message=response.reason_phrase,
                reply_code=results.reply_code,
                reply_text=results.reply_text,
            )

        engine.commit_capabilities(engine.urls.discover(results.response))
        self.log.debug(
            "rets.capabilities",
            extra={"capability": ",".join(engine.urls)},
        )

        if self._output != OutputMode.STRUCTURED:
            results = self.parse(response.content)

        self._perform_action_url(results)

        if then is None:
            return results
        try:
            value = then(results)
        except BaseException:
            self._logout_after_error()
            raise
        self.logout()
        return value

    @contextmanager
    def session(self, username: str, password: str) -> Iterator[Any]:
        """Logged-in scope: `with client.session(user, pw) as result: ...`"""
        results = self.login(username, password)
        try:
            yield results
        except BaseException:
            self._logout_after_error()
            raise
        self.logout()

    def _logout_after_error(self) -> None:
        # The caller's exception wins over a failed logout.
        try:
            self.logout()
        except Exception as exc:
            self.log.warning(
                "rets.logout_failed",
                extra={"error_type": type(exc).__name__},
            )

    def _perform_action_url(self, results: Any) -> None:
        url = self.engine.urls.get("Action")
        if url is None:
            return
        try:
            action = self.engine.request(url, method=RequestMethod.GET, transaction="Action")
        except Exception as exc:
            failure = TransactionFailure(
                f"Unable to follow action URL: '{exc}'.", cause=exc
            )
            self.log.warning(
                "rets.action_failed",
                extra={"url": str(url), "error_type": type(exc).__name__},
            )
            results.secondary_error = failure
            return
        results.secondary_response = action.content

    def logout(self) -> Optional[httpx.Response]:
        """
        Log out. Servers may omit the Logout URL, in which case this is a no-op
        on the wire; session headers and capabilities are reset either way.
        """
        url = self.engine.urls.get("Logout")
        try:
            if url is None:
                return None
            return self.engine.request(url, transaction="Logout")
        finally:
            self.engine.reset()

    def get_metadata(
        self, type: str = "METADATA-SYSTEM", id: str = "*", format: str = "COMPACT"
    ) -> Any:
        url = self.engine.urls.require("GetMetadata")
        header = {"Accept": METADATA_ACCEPT}
        data = {"Type": type, "ID": id, "Format": format}

        response = self.engine.request(url, data, header, transaction="GetMetadata")
        return self.parse(response.content)

    def search(
        self,
        search_type: str,
        klass: str,
        query: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Search transaction; options are added to (and may override) the DMQL2 defaults."""
        url = self.engine.urls.require("Search")
        data = {
            "SearchType": search_type,
            "Class": klass,
            "Query": query,
            "QueryType": "DMQL2",
            "Format": "COMPACT",
            "Count": "0",
        }
        for key, value in (options or {}).items():
            data[key] = str(value)

        response = self.engine.request(url, data, {}, transaction="Search")
        return self.parse(response.content)

    def get_object(
        self, resource: str, type: str, id: str, location: int = 1
    ) -> List[DataObject]:
        url = self.engine.urls.require("GetObject")
        header = {"Accept": ",".join(self.mimemap.keys())}
        data = {
            "Resource": resource,
            "Type": type,
            "ID": id,
            "Location": str(location),
        }

        response = self.engine.request(url, data, header, transaction="GetObject")
        content_type = response.headers.get("content-type", "")

        if is_multipart(content_type):
            return MultipartDecoder(self.mimemap).decode(response.content, content_type)

        info = {
            "content-type": response.headers.get("content-type"),
            "Object-ID": response.headers.get("Object-ID"),
            "Content-ID": response.headers.get("Content-ID"),
        }
        info = {k: v for k, v in info.items() if v is not None}
        if _content_length(response) <= SINGLE_OBJECT_MIN_LENGTH:
            return []
        return [
            DataObject(
                headers=info,
                payload=response.content,
                extension=resolve_extension(info, self.mimemap),
            )
        ]


def _content_length(response: httpx.Response) -> int:
    try:
        return int(response.headers.get("Content-Length", "0"))
    except ValueError:
        return 0


def create_client_from_env(**kwargs) -> RetsClient:
    """Create a RetsClient from environment variables."""
    login_url, _, _, _ = load_env_config()
    if not login_url:
        raise ValueError("Missing RETS_LOGIN_URL in environment.")
    return RetsClient.from_env(**kwargs)


__all__ = ["RetsClient", "create_client_from_env", "SINGLE_OBJECT_MIN_LENGTH"]
