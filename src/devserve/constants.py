"""Reserved URL prefixes and platform flags shared across devserve."""

import sys

# Requests under this prefix are resolved against the filesystem root
FS_PREFIX = "/@fs/"

# Prefix for module ids that are not valid browser import specifiers
VALID_ID_PREFIX = "/@id/"

CLIENT_PUBLIC_PATH = "/@devserve/client"
ENV_PUBLIC_PATH = "/@devserve/env"

INTERNAL_PREFIXES: tuple[str, ...] = (
    FS_PREFIX,
    VALID_ID_PREFIX,
    CLIENT_PUBLIC_PATH,
    ENV_PUBLIC_PATH,
)

IS_WINDOWS = sys.platform == "win32"
