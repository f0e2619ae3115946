"""Client identity headers sent to GitHub and the Copilot API

The device flow and token endpoints only accept requests that look like
they come from a supported editor plugin.
"""

from typing import Dict

EDITOR_VERSION = "Neovim/0.6.1"
EDITOR_PLUGIN_VERSION = "copilot.vim/1.16.0"
USER_AGENT = "GithubCopilot/1.155.0"

# Integration id expected by the chat completions endpoint
COPILOT_INTEGRATION_ID = "vscode-chat"

GITHUB_HEADERS: Dict[str, str] = {
    "accept": "application/json",
    "editor-version": EDITOR_VERSION,
    "editor-plugin-version": EDITOR_PLUGIN_VERSION,
    "content-type": "application/json",
    "user-agent": USER_AGENT,
}
