"""
Project constants definitions
"""

# ============================================================
# Lifecycle
# ============================================================

DEFAULT_DRIVER_PLUGIN = "dummy"
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVEL_ENV = "CRUCIBLE_LOG"

# ============================================================
# Local Layout
# ============================================================

DEFAULT_CONFIG_FILE = ".crucible.toml"
STATE_DIR_NAME = ".crucible"
LOG_DIR_NAME = "logs"
DEFAULT_TEST_BASE_PATH = "test/integration"

# ============================================================
# SSH Defaults
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10

# Reachability probe
SSHD_PROBE_WAIT = 5
SSHD_PROBE_BACKOFF = 2

# ============================================================
# Remote Chef Layout
# ============================================================

REMOTE_CHEF_HOME = "/tmp/crucible-chef-solo"
CHEF_OMNIBUS_URL = "https://www.opscode.com/chef/install.sh"

# ============================================================
# Test Runner (jr)
# ============================================================

JR_INSTALL_URL = "https://raw.github.com/jamie-ci/jr/go"
JR_RUBY_BINPATH = "/opt/chef/embedded/bin"
JR_ROOT = "/opt/jr"
JR_FETCH_TIMEOUT = 30
