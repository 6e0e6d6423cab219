"""Constants for Collaborative Intelligence (ci).

This module contains:
- VERSION: Package version
- Key masking parameters
- Service-specific usage hints shown after storing a key

For paths, messages, and runtime settings, import from:
- collaborative_intelligence.config.paths
- collaborative_intelligence.config.messages
- collaborative_intelligence.config.settings
"""

from collaborative_intelligence import __version__

# =============================================================================
# Version
# =============================================================================

VERSION = __version__

# =============================================================================
# Key Masking
# =============================================================================

# Secrets of this length or shorter are fully hidden
MASK_MIN_REVEAL_LENGTH = 8
MASK_VISIBLE_CHARS = 4
MASK_PLACEHOLDER = "****"

# Separator between environment and key name in key listings ("dev:api_key")
ENVIRONMENT_KEY_SEPARATOR = ":"

# =============================================================================
# Key Usage Hints
# =============================================================================

# Shown after `ci key set` for well-known services; others get the generic hint
SERVICE_USAGE_HINTS: dict[str, tuple[str, ...]] = {
    "anthropic": (
        "Set ANTHROPIC_API_KEY environment variable",
        "Use with the Python SDK, Claude tooling, or the API directly",
    ),
    "openai": (
        "Set OPENAI_API_KEY environment variable",
        "Use with Node.js, Python, or other official SDKs",
    ),
    "github": (
        "Use with gh CLI: gh auth login --with-token",
        "Or set GITHUB_TOKEN environment variable",
    ),
}
