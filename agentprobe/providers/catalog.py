"""Built-in catalog of agent CLIs the desktop shell knows how to drive."""

from .models import CommandResult, ProviderDefinition, StatusCode


def _codex_message(result: CommandResult, status: StatusCode) -> str | None:
    if status is StatusCode.CONNECTED:
        return None
    return "Codex CLI not detected. Install @openai/codex to enable Codex agents."


PROVIDER_CATALOG: tuple[ProviderDefinition, ...] = (
    ProviderDefinition(
        id="codex",
        name="Codex",
        commands=("codex",),
        doc_url="https://github.com/openai/codex",
        install_command="npm install -g @openai/codex",
        message_resolver=_codex_message,
    ),
    ProviderDefinition(
        id="claude",
        name="Claude Code",
        commands=("claude",),
        doc_url="https://docs.anthropic.com/en/docs/claude-code",
        install_command="npm install -g @anthropic-ai/claude-code",
    ),
    ProviderDefinition(
        id="gemini",
        name="Gemini CLI",
        commands=("gemini",),
        doc_url="https://github.com/google-gemini/gemini-cli",
        install_command="npm install -g @google/gemini-cli",
    ),
    ProviderDefinition(
        id="qwen",
        name="Qwen Code",
        commands=("qwen",),
        doc_url="https://github.com/QwenLM/qwen-code",
        install_command="npm install -g @qwen-code/qwen-code",
    ),
    ProviderDefinition(
        id="droid",
        name="Droid",
        commands=("droid",),
        doc_url="https://docs.factory.ai/cli",
        install_command="curl -fsSL https://app.factory.ai/cli | sh",
    ),
    ProviderDefinition(
        id="cursor",
        name="Cursor CLI",
        commands=("cursor-agent",),
        doc_url="https://cursor.com/cli",
        install_command="curl https://cursor.com/install -fsS | bash",
    ),
    ProviderDefinition(
        id="copilot",
        name="GitHub Copilot CLI",
        commands=("copilot",),
        doc_url="https://github.com/github/copilot-cli",
        install_command="npm install -g @github/copilot",
    ),
    ProviderDefinition(
        id="amp",
        name="Amp",
        commands=("amp",),
        doc_url="https://ampcode.com",
        install_command="npm install -g @sourcegraph/amp",
    ),
    ProviderDefinition(
        id="opencode",
        name="OpenCode",
        commands=("opencode",),
        doc_url="https://opencode.ai",
        install_command="npm install -g opencode-ai",
    ),
    ProviderDefinition(
        id="charm",
        name="Charm Crush",
        commands=("crush",),
        doc_url="https://github.com/charmbracelet/crush",
        install_command="npm install -g @charmland/crush",
    ),
    ProviderDefinition(
        id="auggie",
        name="Auggie",
        commands=("auggie",),
        doc_url="https://docs.augmentcode.com/cli",
        install_command="npm install -g @augmentcode/auggie",
    ),
    ProviderDefinition(
        id="goose",
        name="Goose",
        commands=("goose",),
        doc_url="https://block.github.io/goose",
    ),
)
