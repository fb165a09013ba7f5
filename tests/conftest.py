from __future__ import annotations

from typing import Tuple

import pytest

from threatmd import config as config_module
from threatmd.core.buffer import TokenBuffer


THREAT_DOCUMENT = """\
---
sid: T1
severity: high
target: [user]
likelihood: medium
---
# Spoofing of session token

An attacker reuses a stolen session token.

## Example

The attacker captures the cookie over plain HTTP.

## Mitigations

Bind sessions to the client and rotate tokens.

## Condition

```python
not target.usesEncryption
```

## Prerequisites

The session token is transmitted without TLS.

## References

- https://cwe.mitre.org/data/definitions/384.html
- https://owasp.org/www-community/attacks/csrf
"""


def make_threat(*replacements: Tuple[str, str]) -> str:
    """Return the sample threat document with (old, new) replacements applied."""
    document = THREAT_DOCUMENT
    for old, new in replacements:
        document = document.replace(old, new)
    return document


@pytest.fixture
def threat_document() -> str:
    return THREAT_DOCUMENT


@pytest.fixture
def threat_buffer() -> TokenBuffer:
    return TokenBuffer.from_markdown(THREAT_DOCUMENT)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's home directory and THREATMD_* variables out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "THREATMD_EXTENSION",
        "THREATMD_CONDITION_LANGUAGE",
        "THREATMD_REFERENCE_SEPARATOR",
        "THREATMD_JSON_INDENT",
        "THREATMD_SKIP_INVALID",
        "THREATMD_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_config_manager", None)
    return home
