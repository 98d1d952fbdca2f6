"""Process-wide UTC timezone.

Imported for its side effect by the app and CLI entry points so that
``created_at`` timestamps never depend on the host's local zone.
"""

import os

os.environ["TZ"] = "UTC"
