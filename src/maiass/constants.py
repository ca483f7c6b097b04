"""Constants for maiass."""

# Subprocess timeouts (seconds)
GIT_TIMEOUT = 30
GIT_NETWORK_TIMEOUT = 120  # pull/push against a remote

# Exit codes
EXIT_FAILURE = 1
EXIT_NOT_A_REPO = 3

CONFIG_FILENAME = ".maiass.toml"

# Files probed for a version marker, in priority order
VERSION_FILE_CANDIDATES = (
    "package.json",
    "composer.json",
    "VERSION",
    "version.txt",
    "style.css",  # WordPress themes
    "plugin.php",  # WordPress plugins
    "functions.php",
)

DEFAULT_NOISE_PREFIXES = (
    "merge",
    "bump",
    "version bump",
    "bumped version",
    "fixing merge conflicts",
    "fix merge conflict",
    "resolve merge conflict",
    "resolved conflict",
    "ncl",
)

BUMP_COMMIT_MESSAGE = "Bumped version to {version}"
TAG_MESSAGE = "Release version {version}"
RELEASE_BRANCH_PREFIX = "release/"
