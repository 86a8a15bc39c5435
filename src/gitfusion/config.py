"""Git Fusion configuration resolution.

The raw configuration maps entry ids to settings. The reserved ``global``
entry holds defaults shared by every other entry::

    enabled: true
    global:
      user: gitswarm
      password: secret
      perforce:
        user: p4admin
      auto_create:
        path_template: //gitswarm/projects/{namespace}/{project-path}
        repo_name_template: gitswarm-{namespace}-{project-path}
    production:
      url: https://gf.example.com
      git_config_params: http.sslVerify=false
      perforce:
        port: ssl:p4.example.com:1666

GitFusionConfig selects entries; ConfigEntry resolves the effective user,
password, Perforce port and auto-create settings for one of them.
"""

import copy
from collections.abc import Callable, Iterator
from typing import Any

from gitfusion.auto_create import validate_auto_create
from gitfusion.commands import UnknownCommandError
from gitfusion.perforce import expand_perforce_port, parse_server_info, with_ssl_prefix
from gitfusion.url import GitFusionURL, GitFusionURLError
from gitfusion.validation import ValidationResult

RawConfig = dict[str, Any]

# Returns the output of the Git Fusion "info" command for an entry id
InfoHook = Callable[[str], str]

GLOBAL_ENTRY_ID = "global"
DEFAULT_USER = "gitswarm"
DEFAULT_PASSWORD = ""

# Keys read straight from the entry, falling back to the global defaults
PASSTHROUGH_KEYS = ("url", "label", "git_config_params", "perforce")


class ConfigError(Exception):
    """Base class for Git Fusion configuration errors."""


class NoConfigurationFoundError(ConfigError):
    """Raised when no usable entry exists."""

    def __init__(self) -> None:
        """Initialize with the fixed message."""
        super().__init__("No Git Fusion configuration found.")


class UnknownConfigEntryError(ConfigError):
    """Raised when the requested entry id is not in the configuration."""

    def __init__(self, entry_id: str) -> None:
        """Initialize with the missing entry id."""
        self.entry_id = entry_id
        super().__init__(f"Git Fusion config entry '{entry_id}' does not exist.")


class MalformedConfigEntryError(ConfigError):
    """Raised when the requested entry exists but is not a usable target."""

    def __init__(self, entry_id: str) -> None:
        """Initialize with the malformed entry id."""
        self.entry_id = entry_id
        super().__init__(f"Git Fusion config entry '{entry_id}' is malformed.")


class UnknownConfigKeyError(ConfigError):
    """Raised when looking up a key the entry does not resolve."""

    def __init__(self, key: str) -> None:
        """Initialize with the unknown key."""
        self.key = key
        super().__init__(f"Unknown Git Fusion config key: {key}")


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_present(*candidates: Callable[[], Any]) -> Any:
    """Return the first candidate value that is not None.

    Candidates are evaluated lazily so later fallbacks (such as parsing the
    entry URL) only run when needed.
    """
    for candidate in candidates:
        value = candidate()
        if value is not None:
            return value
    return None


class ConfigEntry:
    """One Git Fusion target, resolved against the global defaults."""

    def __init__(
        self,
        entry_id: str | None,
        settings: dict[str, Any],
        global_config: Any = None,
        info_hook: InfoHook | None = None,
    ) -> None:
        self.id = entry_id
        self._entry = dict(settings)
        # Read live on every global_defaults() call
        self._global = global_config
        self._info_hook = info_hook
        self._info: str | None = None
        self._info_loaded = False
        self._normalize()

    def _normalize(self) -> None:
        self._entry["perforce"] = dict(_as_dict(self._entry.get("perforce")))
        self._entry["auto_create"] = dict(_as_dict(self._entry.get("auto_create")))

    @property
    def settings(self) -> dict[str, Any]:
        """The entry's own settings, after normalization."""
        return self._entry

    def global_defaults(self) -> dict[str, Any]:
        """Return the normalized global defaults.

        ``user`` defaults to ``gitswarm`` and ``password`` to the empty string.
        ``url``, ``label`` and ``perforce.port`` are removed: the global entry
        is never a connection target itself.
        """
        global_config = copy.deepcopy(self._global) if isinstance(self._global, dict) else {}
        if global_config.get("user") is None:
            global_config["user"] = DEFAULT_USER
        if global_config.get("password") is None:
            global_config["password"] = DEFAULT_PASSWORD
        global_config["perforce"] = _as_dict(global_config.get("perforce"))
        global_config["auto_create"] = _as_dict(global_config.get("auto_create"))
        global_config.pop("url", None)
        global_config.pop("label", None)
        global_config["perforce"].pop("port", None)
        return global_config

    def url(self) -> GitFusionURL:
        """Parse the entry URL, using the resolved Git Fusion user.

        A fresh URL is built on every call.
        """
        url = GitFusionURL(self._entry.get("url"))
        url.git_config_params = _first_present(
            lambda: self._entry.get("git_config_params"),
            lambda: self.global_defaults().get("git_config_params"),
        )
        url.user = _first_present(
            lambda: self._entry.get("user"),
            lambda: url.user,
            lambda: self.global_defaults()["user"],
        )
        return url

    def _url_user(self) -> str | None:
        # The scp user is part of the address syntax, not a credential
        url = self.url()
        return None if url.scheme == "scp" else url.user

    def git_fusion_password(self) -> str:
        """Password for Git Fusion.

        Priority:
        1. entry password
        2. password embedded in the entry URL
        3. global password (empty string if unset)
        """
        return _first_present(
            lambda: self._entry.get("password"),
            lambda: self.url().password,
            lambda: self.global_defaults()["password"],
        )

    def git_fusion_user(self) -> str:
        """User for Git Fusion: entry user, URL user (not scp), then global user."""
        return _first_present(
            lambda: self._entry.get("user"),
            self._url_user,
            lambda: self.global_defaults()["user"],
        )

    def perforce_password(self) -> str:
        """Password for the Perforce server.

        Perforce-specific settings win over the generic ones, and global
        Perforce settings win over the entry's generic password.
        """
        return _first_present(
            lambda: self._entry["perforce"].get("password"),
            lambda: self.global_defaults()["perforce"].get("password"),
            lambda: self._entry.get("password"),
            lambda: self.url().password,
            lambda: self.global_defaults()["password"],
        )

    def perforce_user(self) -> str:
        """User for the Perforce server, with the same priority as perforce_password."""
        return _first_present(
            lambda: self._entry["perforce"].get("user"),
            lambda: self.global_defaults()["perforce"].get("user"),
            lambda: self._entry.get("user"),
            self._url_user,
            lambda: self.global_defaults()["user"],
        )

    def _info_text(self) -> str | None:
        if not self._info_loaded:
            self._info_loaded = True
            if self.id and self._info_hook is not None:
                try:
                    self._info = self._info_hook(self.id)
                except Exception:  # noqa: BLE001
                    self._info = ""
        return self._info

    def perforce_port(self) -> str | None:
        """Perforce port for this entry, or None if it cannot be determined.

        An explicit ``perforce.port`` is used as is. Otherwise the port is
        scraped from the Git Fusion ``info`` output (fetched at most once per
        entry) and expanded with the Git Fusion host. Encrypted servers do not
        report the ``ssl:`` prefix, so it is added when needed.
        """
        explicit = self._entry["perforce"].get("port")
        if explicit is not None:
            return explicit

        info = self._info_text()
        if info is None:
            return None

        server = parse_server_info(info)
        port = self.expand_perforce_port(server.address)
        if port is not None and server.encrypted:
            port = with_ssl_prefix(port)
        return port

    def expand_perforce_port(self, port: str | None) -> str | None:
        """Expand a port relative to this entry's Git Fusion host."""
        if not port:
            return port
        return expand_perforce_port(port, GitFusionURL(self._entry.get("url")).host)

    def auto_create(self, setting: str | None = None) -> Any:
        """Auto-create settings, global merged with (and overridden by) the entry's own."""
        settings = dict(self.global_defaults()["auto_create"])
        settings.update(self._entry["auto_create"])
        return settings.get(setting) if setting else settings

    def validate_auto_create(self) -> ValidationResult:
        return validate_auto_create(self.auto_create())

    def auto_create_configured(self) -> bool:
        """Return True if both auto-create templates are present and well-formed."""
        return self.validate_auto_create().is_valid

    _RESOLVERS = {
        "password": "git_fusion_password",
        "user": "git_fusion_user",
        "perforce_password": "perforce_password",
        "perforce_user": "perforce_user",
        "perforce_port": "perforce_port",
        "auto_create": "auto_create",
    }

    def __getitem__(self, key: str) -> Any:
        """Look up a logical key.

        Resolved keys go through their resolver; passthrough keys read the
        entry, then the global defaults. Anything else is rejected.

        Raises:
            UnknownConfigKeyError: If the key is not known.
        """
        if key in self._RESOLVERS:
            return getattr(self, self._RESOLVERS[key])()
        if key == "id":
            return self.id
        if key in PASSTHROUGH_KEYS:
            return _first_present(
                lambda: self._entry.get(key),
                lambda: self.global_defaults().get(key),
            )
        raise UnknownConfigKeyError(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._entry[key] = value
        self._normalize()

    def __repr__(self) -> str:
        return f"ConfigEntry(id={self.id!r}, url={self._entry.get('url')!r})"


class GitFusionConfig:
    """The full Git Fusion configuration.

    Accepts either the raw mapping or a callable returning it; a callable is
    consulted on every access so the caller controls loading and caching.
    """

    def __init__(
        self,
        config: RawConfig | Callable[[], RawConfig] | None,
        info_hook: InfoHook | None = None,
    ) -> None:
        self._source = config
        self.info_hook = info_hook

    def raw(self) -> RawConfig:
        raw = self._source() if callable(self._source) else self._source
        return raw if isinstance(raw, dict) else {}

    @property
    def enabled(self) -> bool:
        return bool(self.raw().get("enabled", False))

    def _usable_ids(self, raw: RawConfig) -> Iterator[str]:
        for entry_id, value in raw.items():
            if entry_id == GLOBAL_ENTRY_ID or not isinstance(value, dict):
                continue
            url = value.get("url")
            if isinstance(url, str) and url:
                yield entry_id

    def entries(self) -> dict[str, ConfigEntry]:
        """Return every usable entry, in configuration order.

        Raises:
            NoConfigurationFoundError: If there are none.
        """
        raw = self.raw()
        global_config = raw.get(GLOBAL_ENTRY_ID)
        entries = {
            entry_id: ConfigEntry(entry_id, raw[entry_id], global_config, self.info_hook)
            for entry_id in self._usable_ids(raw)
        }
        if not entries:
            raise NoConfigurationFoundError()
        return entries

    def entry(self, entry_id: str | None = None) -> ConfigEntry:
        """Return the entry with the given id, or the first entry if no id is given.

        Raises:
            NoConfigurationFoundError: If there are no usable entries.
            UnknownConfigEntryError: If the id is not in the configuration.
            MalformedConfigEntryError: If the id exists but is not a usable entry.
        """
        entries = self.entries()

        if entry_id is not None and entry_id not in self.raw():
            raise UnknownConfigEntryError(entry_id)
        if entry_id is not None and entry_id not in entries:
            raise MalformedConfigEntryError(entry_id)

        if entry_id is None:
            return next(iter(entries.values()))
        return entries[entry_id]

    def validate(self) -> ValidationResult:
        """Check every entry for problems a connection attempt would hit.

        Reports entries without a URL, URLs that do not parse, and
        auto-create sections that are present but unusable.
        """
        raw = self.raw()
        errors: list[str] = []
        usable = set(self._usable_ids(raw))

        for entry_id, value in raw.items():
            if entry_id in (GLOBAL_ENTRY_ID, "enabled"):
                continue
            if entry_id not in usable:
                errors.append(f"'{entry_id}': missing url")
                continue

            entry = ConfigEntry(entry_id, value, raw.get(GLOBAL_ENTRY_ID))
            try:
                entry.url()
            except (GitFusionURLError, UnknownCommandError) as e:
                errors.append(f"'{entry_id}': {e}")
                continue

            if entry.auto_create():
                errors.extend(f"'{entry_id}': {error}" for error in entry.validate_auto_create().errors)

        if not usable:
            errors.append(str(NoConfigurationFoundError()))

        return ValidationResult.from_errors(errors)
