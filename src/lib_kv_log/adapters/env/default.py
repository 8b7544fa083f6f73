"""Environment variable adapter.

Purpose
-------
Translate ``LIB_KV_LOG_*`` process environment variables into the flat
mapping that :func:`lib_kv_log.core.load_settings` turns into a
:class:`~lib_kv_log.domain.settings.LogSettings`.

Key behaviours
--------------
* Enforces a prefix (``default_env_prefix``) so only relevant keys are captured.
* Lower-cases the remaining key (``LIB_KV_LOG_OUTPUT`` → ``output``).
* Keeps values as the raw strings found in the environment; both settings
  are names or paths, so no scalar coercion is applied.
* Emits diagnostics via :mod:`lib_kv_log.observability`.
"""

from __future__ import annotations

import os
from typing import Mapping

from ...observability import log_debug


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-kv-log')
    'LIB_KV_LOG'
    """

    return slug.replace("-", "_").upper()


class DefaultEnvLoader:
    """Load environment variables that belong to the logging namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._environ = os.environ if environ is None else environ

    def load(self, prefix: str) -> dict[str, str]:
        """Return variables carrying *prefix*, keyed by their lower-cased remainder.

        Parameters
        ----------
        prefix:
            Prefix filter (upper-case). The loader appends ``_`` if missing.

        Side Effects
        ------------
        Emits an ``env_variables_loaded`` debug event listing the keys found.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={'DEMO_OUTPUT': 'stderr', 'OTHER': 'x'})
        >>> loader.load('DEMO')
        {'output': 'stderr'}
        """

        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, str] = {}
        for key, value in self._environ.items():
            if prefix and not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :] if prefix else key
            if not stripped:
                continue
            collected[stripped.lower()] = value
        log_debug("env_variables_loaded", component="env", target=prefix, keys=sorted(collected))
        return collected
