"""UI messages and strings for ci.

This module consolidates all user-facing messages including:
- Banner and help text
- Success/error/info/warning messages for key management
- Usage hints
"""

# =============================================================================
# Project Metadata
# =============================================================================

PROJECT_NAME = "Collaborative Intelligence"
PROJECT_TAGLINE = "Per-project AI agent configuration and API key management"

# =============================================================================
# Help
# =============================================================================

HELP_TEXT = f"""
[bold cyan]ci[/bold cyan] - {PROJECT_NAME}: {PROJECT_TAGLINE}

[bold]Commands:[/bold]
  [cyan]key[/cyan]         Manage API keys for external services
  [cyan]version[/cyan]     Show version information

[bold]Examples:[/bold]
  [dim]# Store an OpenAI key for every project[/dim]
  [dim]$ ci key set openai api_key sk-abcdef123456[/dim]

  [dim]# Store a staging-only key[/dim]
  [dim]$ ci key set openai api_key sk-staging --env staging[/dim]

  [dim]# Load stored keys into the current shell[/dim]
  [dim]$ eval "$(ci key export)"[/dim]
"""

KEY_HELP = "Manage API keys for external services"

# =============================================================================
# Success Messages
# =============================================================================

SUCCESS_MESSAGES = {
    "key_set": "API key [bold]{service}.{key_name}[/bold] set successfully",
    "key_set_environment": (
        "API key [bold]{service}.{key_name}[/bold] for environment "
        "[bold]{environment}[/bold] set successfully"
    ),
    "key_set_project": "Project-specific API key [bold]{service}.{key_name}[/bold] set successfully",
    "key_removed": "API key [bold]{service}.{key_name}[/bold] removed successfully",
    "key_removed_environment": (
        "API key [bold]{service}.{key_name}[/bold] for environment "
        "[bold]{environment}[/bold] removed successfully"
    ),
}

# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES = {
    "generic_error": "An error occurred: {error}",
    "env_and_project": "Use either --env or --project, not both",
    "key_not_found": "API key {service}.{key_name} not found",
}

# =============================================================================
# Warning Messages
# =============================================================================

WARNING_MESSAGES = {
    "key_not_found": "API key [bold]{service}.{key_name}[/bold] not found",
    "key_not_found_environment": (
        "API key [bold]{service}.{key_name}[/bold] for environment "
        "[bold]{environment}[/bold] not found"
    ),
    "no_keys": "No API keys configured",
}

# =============================================================================
# Info Messages
# =============================================================================

INFO_MESSAGES = {
    "configured_keys": "Configured API keys:",
    "keys_masked": "Key values are masked for security",
    "set_key_hint": "To set a key, use: ci key set <service> <key_name> <key_value>",
    "service_usage": "{display} API key usage:",
    "generic_usage": "To use this key in environment variables:",
    "generic_usage_command": "export {env_var}=$(ci key get {service} {key_name})",
}
