import os
import sys

# ====================================================================================
# ENVIRONMENT CONFIGURATION: PROD / STAGE / LOCAL isolation through prefixes
# ====================================================================================
# Every variable is read with the environment prefix:
#   - PROD: PROD_BOT_TOKEN, PROD_PRIVILEGED_USER_ID, PROD_TRACKED_CHAT_IDS
#   - STAGE: STAGE_BOT_TOKEN, STAGE_PRIVILEGED_USER_ID, ...
#   - LOCAL: LOCAL_BOT_TOKEN, LOCAL_PRIVILEGED_USER_ID, ...
#
# A STAGE bot can never pick up PROD_BOT_TOKEN even if it is set.
# LOG_LEVEL / DEBUG are read without prefix by app.core.logging_config.
# ====================================================================================

APP_ENV = os.getenv("APP_ENV", "prod").lower()
if APP_ENV not in ("prod", "stage", "local"):
    print(f"ERROR: Invalid APP_ENV={APP_ENV}. Must be one of: prod, stage, local", file=sys.stderr)
    sys.exit(1)

IS_LOCAL = APP_ENV == "local"
IS_STAGE = APP_ENV == "stage"
IS_PROD = APP_ENV == "prod"


def env(key: str, default: str = "") -> str:
    """
    Read an environment variable with the environment prefix.

    Example:
        env("BOT_TOKEN") -> value of STAGE_BOT_TOKEN (if APP_ENV=stage)
        env("LEADERBOARD_LIMIT", default="10") -> "10" if not set
    """
    env_key = f"{APP_ENV.upper()}_{key}"
    return os.getenv(env_key, default)


# Un-prefixed variables are refused outright
_direct_usage_vars = ["BOT_TOKEN", "PRIVILEGED_USER_ID"]
for var in _direct_usage_vars:
    if os.getenv(var):
        print(f"ERROR: Direct usage of {var} is FORBIDDEN!", file=sys.stderr)
        print(f"ERROR: Use {APP_ENV.upper()}_{var} instead (via env('{var}'))", file=sys.stderr)
        sys.exit(1)

print(f"INFO: Config loaded for environment: {APP_ENV.upper()}", flush=True)

# ====================================================================================
# SECRETS
# ====================================================================================
# Validated at startup and never logged.
# ====================================================================================

# Telegram Bot Token (from @BotFather)
BOT_TOKEN = env("BOT_TOKEN")
if not BOT_TOKEN:
    print(f"ERROR: {APP_ENV.upper()}_BOT_TOKEN environment variable is not set!", file=sys.stderr)
    sys.exit(1)

# The only user allowed to run "set <@X> to <@Y>"
PRIVILEGED_USER_ID = env("PRIVILEGED_USER_ID").strip()
if not PRIVILEGED_USER_ID:
    print(f"ERROR: {APP_ENV.upper()}_PRIVILEGED_USER_ID environment variable is not set!", file=sys.stderr)
    sys.exit(1)
if not PRIVILEGED_USER_ID.isdigit():
    print(f"ERROR: PRIVILEGED_USER_ID must be a Telegram user id, got: {PRIVILEGED_USER_ID}", file=sys.stderr)
    sys.exit(1)

# ====================================================================================
# REFERRALS
# ====================================================================================

# Chats whose joins trigger the referrer prompt, comma-separated
# (supergroup/channel ids look like -1001234567890)
_tracked_chat_ids_raw = env("TRACKED_CHAT_IDS")
try:
    TRACKED_CHAT_IDS = frozenset(
        int(chat_id.strip()) for chat_id in _tracked_chat_ids_raw.split(",") if chat_id.strip()
    )
except ValueError:
    print(f"ERROR: TRACKED_CHAT_IDS must be comma-separated chat ids, got: {_tracked_chat_ids_raw}", file=sys.stderr)
    sys.exit(1)
if not TRACKED_CHAT_IDS:
    print(f"WARNING: {APP_ENV.upper()}_TRACKED_CHAT_IDS is not set - join prompts are disabled", file=sys.stderr)

# Ledger file, created on first write
REFERRALS_FILE = env("REFERRALS_FILE", default="referals/referals.json")

# Also write the "referrals" mirror map so older readers of the file keep working
LEGACY_LEDGER_FORMAT = env("LEGACY_LEDGER_FORMAT", default="true").lower() == "true"

try:
    LEADERBOARD_LIMIT = int(env("LEADERBOARD_LIMIT", default="10"))
except ValueError:
    LEADERBOARD_LIMIT = 0
if LEADERBOARD_LIMIT < 1:
    print("ERROR: LEADERBOARD_LIMIT must be a positive integer", file=sys.stderr)
    sys.exit(1)

# ====================================================================================
# HEALTH SERVER
# ====================================================================================

HEALTH_SERVER_HOST = env("HEALTH_SERVER_HOST", default="0.0.0.0")
try:
    HEALTH_SERVER_PORT = int(env("HEALTH_SERVER_PORT", default="3000"))
except ValueError:
    print("ERROR: HEALTH_SERVER_PORT must be a number", file=sys.stderr)
    sys.exit(1)
