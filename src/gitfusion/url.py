"""Git Fusion URL parsing and serialization.

A Git Fusion URL is a plain git URL (http, https, ssh or scp-style
``user@host:path``) whose path may carry an extended command, a repo
and free-form extra parameters:

    https://user@host/@status@my-repo@1234
    user@host:@info
    ssh://host:2222/my-repo

The path segments are split on ``@``:

- ``@command``                  command only
- ``@command@repo``             command and repo
- ``@command@repo@extra...``    extra keeps any further ``@`` characters
- ``repo``                      repo only (no leading ``@``)
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from gitfusion.commands import UnknownCommandError, validate_command

VALID_SCHEMES = ("http", "https", "ssh")
SCP_SCHEME = "scp"

# Ports dropped from the base URL when they match the scheme default
DEFAULT_PORTS = {"http": 80, "https": 443}

DEFAULT_DELIMITER = "/"

_SCHEME_PATTERN = re.compile(r"^(?P<scheme>\w+)://.+$")
# user@host or host, followed by the first : or / (host may not contain either)
_SCP_PATTERN = re.compile(r"^(?P<trimmed>(?:[^@]+@)?[^/:]+)(?P<delim>[/:])(?P<path>.*)$")
_EDGE_SLASHES = re.compile(r"^/|/$")

# RFC 3986 character classes: unreserved plus sub-delims, and percent escapes
_PLAIN = r"A-Za-z0-9\-._~!$&'()*+,;="
_ESCAPED = r"%[0-9A-Fa-f]{2}"
_REG_NAME = re.compile(rf"(?:[{_PLAIN}]|{_ESCAPED})*")
_IP_LITERAL = re.compile(rf"\[(?:[0-9A-Fa-f:.]+|v[0-9A-Fa-f]+\.[{_PLAIN}:]+)\]")
_USERINFO = re.compile(rf"(?:[{_PLAIN}:]|{_ESCAPED})*")
_PATH = re.compile(rf"(?:[{_PLAIN}:@/]|{_ESCAPED})*")
_QUERY = re.compile(rf"(?:[{_PLAIN}:@/?]|{_ESCAPED})*")


class GitFusionURLError(ValueError):
    """Base class for Git Fusion URL errors."""


class MissingURLError(GitFusionURLError):
    """Raised when no URL is given."""

    def __init__(self) -> None:
        """Initialize with the fixed message."""
        super().__init__("No URL provided.")


class InvalidSchemeError(GitFusionURLError):
    """Raised when the URL scheme is not http, https or ssh."""

    def __init__(self, scheme: str) -> None:
        """Initialize with the rejected scheme."""
        self.scheme = scheme
        super().__init__(f"Invalid URL scheme specified: {scheme}.")


class MissingSCPUserError(GitFusionURLError):
    """Raised when an scp-style URL has no user."""

    def __init__(self) -> None:
        """Initialize with the fixed message."""
        super().__init__("User must be specified if scp syntax is used.")


class InvalidURLError(GitFusionURLError):
    """Raised when the URL cannot be parsed or has no host."""

    def __init__(self, url: str, detail: str | None = None) -> None:
        """Initialize with the offending URL and the parser message, if any."""
        self.url = url
        self.detail = detail
        if detail:
            super().__init__(f"Invalid URL specified: {url} : {detail}.")
        else:
            super().__init__(f"Invalid URL specified: {url}.")


class MissingRepoError(GitFusionURLError):
    """Raised when a repo is required but none was parsed."""

    def __init__(self) -> None:
        """Initialize with the fixed message."""
        super().__init__("Repo expected but none given.")


class ExtraWithoutCommandAndRepoError(GitFusionURLError):
    """Raised when serializing a URL that has extra but lacks command or repo."""

    def __init__(self) -> None:
        """Initialize with the fixed message."""
        super().__init__("Extra requires both command and repo to be specified.")


@dataclass(frozen=True)
class _Authority:
    """The pieces of a URL authority, kept exactly as written."""

    scheme: str
    userinfo: str | None
    host: str
    port: int | None
    path: str

    @property
    def user(self) -> str | None:
        if self.userinfo is None:
            return None
        return self.userinfo.partition(":")[0]

    @property
    def password(self) -> str | None:
        if self.userinfo is None or ":" not in self.userinfo:
            return None
        return self.userinfo.partition(":")[2]

    def host_and_port(self) -> str:
        """Host plus ``:port`` when the port differs from the scheme default."""
        if self.port is not None and self.port != DEFAULT_PORTS.get(self.scheme):
            return f"{self.host}:{self.port}"
        return self.host


def _split_url(url: str) -> _Authority:
    """Split a URL that carries an explicit scheme into its authority parts.

    Raises:
        InvalidURLError: If the URL is malformed or has no host.
    """
    if any(ch.isspace() or ord(ch) < 32 for ch in url):
        raise InvalidURLError(url, "bad URI (contains whitespace or control characters)")

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e

    userinfo, at, hostport = parts.netloc.rpartition("@")
    if not at:
        userinfo = None

    if hostport.startswith("["):
        host = hostport[: hostport.find("]") + 1]
    else:
        host = hostport.partition(":")[0]

    checks = (
        ("userinfo", userinfo or "", _USERINFO),
        ("host", host, _IP_LITERAL if host.startswith("[") else _REG_NAME),
        ("path", parts.path, _PATH),
        ("query", parts.query, _QUERY),
        ("fragment", parts.fragment, _QUERY),
    )
    for component, value, pattern in checks:
        if not pattern.fullmatch(value):
            raise InvalidURLError(url, f"bad {component} ({value})")

    return _Authority(
        scheme=parts.scheme,
        userinfo=userinfo,
        host=host,
        port=port,
        path=parts.path,
    )


class GitFusionURL:
    """A git URL extended with a Git Fusion command, repo and extra parameters.

    Instances are produced by parsing a string. Fields may then be changed
    through their property setters and the result serialized with ``str()``.
    """

    def __init__(self, url: str | None) -> None:
        self._scheme = SCP_SCHEME
        self._base = ""
        self._delimiter: str | None = None
        self._command: str | None = None
        self._repo: str | None = None
        self._extra: Any = None
        self._password: str | None = None
        self._strip_password = True
        self._git_config_params: list[str] = []
        self.parse(url)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "GitFusionURL":
        """Build a URL from a config block with ``url``, ``git_config_params`` and ``password``."""
        url = cls(config.get("url"))
        url.git_config_params = config.get("git_config_params")
        url.password = config.get("password")
        return url

    @classmethod
    def is_valid(cls, url: str | None) -> bool:
        """Check whether the given string parses as a Git Fusion URL."""
        try:
            cls(url)
        except (GitFusionURLError, UnknownCommandError):
            return False
        return True

    def parse(self, url: str | None) -> "GitFusionURL":
        """Parse the given URL into base, command, repo and extra.

        Any previously parsed delimiter, command, repo and extra are reset.

        Raises:
            MissingURLError: If no URL is provided.
            InvalidSchemeError: If the scheme is not http, https or ssh.
            MissingSCPUserError: If an scp-style URL has no user.
            InvalidURLError: If the URL is not a string or is otherwise malformed.
            UnknownCommandError: If the embedded command is not recognized.
        """
        self._delimiter = None
        self._command = None
        self._repo = None
        self._extra = None

        if not url:
            raise MissingURLError()
        if not isinstance(url, str):
            raise InvalidURLError(str(url), "expected a string")

        match = _SCHEME_PATTERN.match(url)
        scheme = match.group("scheme") if match else None
        if scheme is not None and scheme not in VALID_SCHEMES:
            raise InvalidSchemeError(scheme)

        # No scheme means scp syntax; rewrite a colon path separator to a slash
        if scheme is None:
            scp_match = _SCP_PATTERN.match(url)
            if scp_match:
                self._delimiter = scp_match.group("delim")
                url = scp_match.group("trimmed") + "/" + scp_match.group("path")
            else:
                self._delimiter = ":"
            url = f"{SCP_SCHEME}://{url}"

        parsed = _split_url(url)

        if parsed.scheme == SCP_SCHEME and not parsed.user:
            raise MissingSCPUserError()
        if not parsed.host:
            raise InvalidURLError(url)

        self._scheme = parsed.scheme
        if self._scheme == SCP_SCHEME:
            self._base = f"{parsed.user}@{parsed.host}"
        else:
            userinfo = f"{parsed.userinfo}@" if parsed.userinfo is not None else ""
            self._base = f"{parsed.scheme}://{userinfo}{parsed.host_and_port()}"

        path = _EDGE_SLASHES.sub("", parsed.path)
        if not path:
            return self

        if path.startswith("@"):
            remainder = path[1:]
            segments = remainder.split("@", 2) if remainder else []
            segments += [None] * (3 - len(segments))
            self.command, self.repo, self.extra = segments
        else:
            self.repo = path
        return self

    def _authority(self) -> _Authority:
        if self._scheme == SCP_SCHEME:
            return _split_url(f"{SCP_SCHEME}://{self._base}")
        return _split_url(self._base)

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def base(self) -> str:
        """The URL without its path: ``user@host`` for scp, ``scheme://[userinfo@]host[:port]`` otherwise."""
        return self._base

    @base.setter
    def base(self, value: str) -> None:
        self._base = value

    @property
    def host(self) -> str:
        return self._authority().host

    @property
    def user(self) -> str | None:
        return self._authority().user

    @user.setter
    def user(self, value: str | None) -> None:
        authority = self._authority()
        if self._scheme == SCP_SCHEME:
            if not value:
                raise MissingSCPUserError()
            self._base = f"{value}@{authority.host}"
            return

        if value is None:
            userinfo = ""
        elif authority.password is not None:
            userinfo = f"{value}:{authority.password}@"
        else:
            userinfo = f"{value}@"
        self._base = f"{self._scheme}://{userinfo}{authority.host_and_port()}"

    @property
    def password(self) -> str | None:
        """Password from config if set, otherwise the one embedded in the base URL."""
        if self._password is not None:
            return self._password
        return self._authority().password

    @password.setter
    def password(self, value: str | None) -> None:
        self._password = value

    @property
    def delimiter(self) -> str:
        return self._delimiter or DEFAULT_DELIMITER

    @delimiter.setter
    def delimiter(self, value: str | None) -> None:
        self._delimiter = value

    @property
    def command(self) -> str | None:
        return self._command

    @command.setter
    def command(self, value: str | None) -> None:
        if value is not None:
            validate_command(value)
        self._command = value

    @property
    def repo(self) -> str | None:
        return self._repo

    @repo.setter
    def repo(self, value: str | bool | None) -> None:
        """Set the repo from a string, assert it with True, or clear it with None/False."""
        if isinstance(value, str):
            self._repo = value
        elif value:
            if self._repo is None:
                raise MissingRepoError()
        else:
            self._repo = None

    @property
    def extra(self) -> Any:
        return self._extra

    @extra.setter
    def extra(self, value: Any) -> None:
        self._extra = value

    @property
    def strip_password(self) -> bool:
        return self._strip_password

    @strip_password.setter
    def strip_password(self, value: bool) -> None:
        self._strip_password = value

    @property
    def git_config_params(self) -> list[str]:
        return self._git_config_params

    @git_config_params.setter
    def git_config_params(self, params: str | list[str] | None) -> None:
        if not params:
            self._git_config_params = []
        elif isinstance(params, str):
            self._git_config_params = [params]
        else:
            self._git_config_params = list(params)

    def append_git_config_params(self, params: str | list[str] | None) -> "GitFusionURL":
        """Append one ``key=value`` string or a list of them."""
        if not params:
            return self
        if isinstance(params, str):
            self._git_config_params.append(params)
        else:
            self._git_config_params.extend(params)
        return self

    def clear_path(self) -> "GitFusionURL":
        """Remove repo, command and extra."""
        self.repo = None
        return self.clear_command()

    def clear_command(self) -> "GitFusionURL":
        """Remove command and extra, keeping the repo."""
        self.command = None
        self.extra = None
        return self

    @property
    def is_pathed(self) -> bool:
        return self._command is not None or self._repo is not None or self._extra is not None

    def to_string(self) -> str:
        """Serialize the URL, stripping any password unless strip_password is off.

        Raises:
            ExtraWithoutCommandAndRepoError: If extra is set without both command and repo.
        """
        if self._extra is not None and (self._command is None or self._repo is None):
            raise ExtraWithoutCommandAndRepoError()

        if self._scheme != SCP_SCHEME and self._strip_password:
            parsed = _split_url(self._base)
            user = f"{parsed.user}@" if parsed.user is not None else ""
            result = f"{parsed.scheme}://{user}{parsed.host_and_port()}"
        else:
            result = self._base

        if self.is_pathed:
            result += self.delimiter
        if self._command is not None:
            result += "@" + self._command
        if self._command is not None and self._repo is not None:
            result += "@"
        if self._repo is not None:
            result += self._repo
        if self._extra is not None:
            result += "@" + str(self._extra)
        return result

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return (
            f"GitFusionURL(scheme={self._scheme!r}, command={self._command!r}, "
            f"repo={self._repo!r}, extra={self._extra!r})"
        )
