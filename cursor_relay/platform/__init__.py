"""
Platform modules — agent-agnostic, used by any bridge.

Provides configuration, prompt construction, and utilities.
"""

from cursor_relay.platform.config import AgentCliConfig, RelaySettings
from cursor_relay.platform.prompts import build_agent_stdin, build_title_prompt, clean_title
from cursor_relay.platform.utils import new_id, redact_secrets, timestamp
