"""Status-code constants shared across collab_fetch.

Kept in one tiny module so the error taxonomy cannot drift between layers.
"""

from __future__ import annotations

# Synthetic code for "no HTTP response obtained" (DNS, refused, reset).
# Outside the 1xx-5xx range so it never collides with a real status.
TRANSPORT_FAILURE_STATUS: int = 709

# Synthetic code for a missing response or an undecodable body.
MALFORMED_RESPONSE_STATUS: int = 400

AUTH_FAILURE_STATUS_CODES: frozenset[int] = frozenset({401, 403})

DEFAULT_NON_RETRIABLE_STATUS_CODES: tuple[int, ...] = (400, 404)
