"""
Builder classes for fluent API construction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from anthropic_messages.errors import InvalidRequestError
from anthropic_messages.transport.retry import RetryConfig
from anthropic_messages.types.message import Message, TextBlock
from anthropic_messages.types.request import MessagesRequest, RequestMetadata, ThinkingConfig
from anthropic_messages.types.tool import ToolChoice, ToolDefinition

if TYPE_CHECKING:
    import httpx

    from anthropic_messages.client.core import AnthropicClient

# Smallest thinking budget the API accepts
MIN_THINKING_BUDGET = 1024


class MessagesRequestBuilder:
    """Builder for Messages API requests.

    Setters only record values; every check runs in ``validate()`` so all
    problems are reported together. A successful ``build()`` consumes the
    builder.

    Example:
        >>> request = (
        ...     MessagesRequestBuilder("claude-sonnet-4-5", [Message.user("Hello!")], 1024)
        ...     .system("You are terse.")
        ...     .temperature(0.7)
        ...     .build()
        ... )
    """

    def __init__(self, model: str, messages: list[Message], max_tokens: int) -> None:
        """Initialize the builder with the required fields.

        Args:
            model: Model identifier
            messages: Conversation turns, oldest first
            max_tokens: Maximum tokens to generate
        """
        self._model = model
        self._messages = list(messages)
        self._max_tokens = max_tokens
        self._system: str | list[TextBlock] | None = None
        self._metadata: RequestMetadata | None = None
        self._stop_sequences: list[str] | None = None
        self._temperature: float | None = None
        self._top_p: float | None = None
        self._top_k: int | None = None
        self._stream: bool | None = None
        self._tools: list[ToolDefinition] | None = None
        self._tool_choice: ToolChoice | None = None
        self._thinking: ThinkingConfig | None = None
        self._consumed = False

    def _ensure_open(self) -> None:
        if self._consumed:
            raise RuntimeError("MessagesRequestBuilder was already consumed by build()")

    def model(self, model: str) -> MessagesRequestBuilder:
        """Set the model.

        Args:
            model: Model identifier (e.g., "claude-sonnet-4-5")

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._model = model
        return self

    def messages(self, messages: list[Message]) -> MessagesRequestBuilder:
        """Replace the conversation.

        Args:
            messages: List of messages

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._messages = list(messages)
        return self

    def add_message(self, message: Message) -> MessagesRequestBuilder:
        """Append a message to the conversation.

        Args:
            message: Message to add

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._messages.append(message)
        return self

    def max_tokens(self, value: int) -> MessagesRequestBuilder:
        """Set maximum tokens to generate.

        Args:
            value: Maximum tokens

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._max_tokens = value
        return self

    def system(self, prompt: str | list[TextBlock]) -> MessagesRequestBuilder:
        """Set the system prompt.

        Args:
            prompt: Plain text or text blocks

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._system = prompt
        return self

    def metadata(self, user_id: str) -> MessagesRequestBuilder:
        """Attach an opaque end-user identifier.

        Args:
            user_id: End-user identifier

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._metadata = RequestMetadata(user_id=user_id)
        return self

    def stop_sequences(self, sequences: list[str]) -> MessagesRequestBuilder:
        """Set custom stop sequences.

        Args:
            sequences: List of stop sequences

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._stop_sequences = list(sequences)
        return self

    def temperature(self, value: float) -> MessagesRequestBuilder:
        """Set the temperature.

        Args:
            value: Temperature (0.0 to 1.0)

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._temperature = value
        return self

    def top_p(self, value: float) -> MessagesRequestBuilder:
        """Set nucleus sampling parameter.

        Args:
            value: Top-p value (0.0 to 1.0)

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._top_p = value
        return self

    def top_k(self, value: int) -> MessagesRequestBuilder:
        """Only sample from the top K options for each token.

        Args:
            value: Non-negative integer

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._top_k = value
        return self

    def stream(self, enabled: bool = True) -> MessagesRequestBuilder:
        """Request a streamed response.

        Args:
            enabled: Whether to stream

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._stream = enabled
        return self

    def tools(self, tools: list[ToolDefinition]) -> MessagesRequestBuilder:
        """Set the tools the model may call.

        Args:
            tools: List of tool definitions

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._tools = list(tools)
        return self

    def add_tool(self, tool: ToolDefinition) -> MessagesRequestBuilder:
        """Add one tool.

        Args:
            tool: Tool definition

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._tools = [*(self._tools or []), tool]
        return self

    def tool_choice(self, choice: ToolChoice) -> MessagesRequestBuilder:
        """Set tool choice policy.

        Args:
            choice: Tool choice (auto, any, tool or none)

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._tool_choice = choice
        return self

    def thinking(self, config: ThinkingConfig | int) -> MessagesRequestBuilder:
        """Configure extended thinking.

        Args:
            config: ThinkingConfig, or a token budget to enable thinking

        Returns:
            Self for chaining
        """
        self._ensure_open()
        self._thinking = ThinkingConfig.enabled(config) if isinstance(config, int) else config
        return self

    def validate(self) -> list[str]:
        """Check every constraint without building.

        Returns:
            Human-readable problems; empty when the request is valid
        """
        problems: list[str] = []

        if not isinstance(self._model, str) or not self._model.strip():
            problems.append("model must be a non-empty string")

        if not self._messages:
            problems.append("messages must not be empty")
        for i, message in enumerate(self._messages):
            if not isinstance(message, Message):
                problems.append(f"messages[{i}] is not a Message")

        if not _is_int(self._max_tokens) or self._max_tokens <= 0:
            problems.append("max_tokens must be a positive integer")

        if self._temperature is not None and not _in_unit_range(self._temperature):
            problems.append("temperature must be between 0.0 and 1.0")
        if self._top_p is not None and not _in_unit_range(self._top_p):
            problems.append("top_p must be between 0.0 and 1.0")
        if self._top_k is not None and (not _is_int(self._top_k) or self._top_k < 0):
            problems.append("top_k must be a non-negative integer")

        if self._stop_sequences is not None:
            for i, sequence in enumerate(self._stop_sequences):
                if not sequence:
                    problems.append(f"stop_sequences[{i}] must not be empty")

        problems.extend(self._validate_tools())
        problems.extend(self._validate_thinking())
        return problems

    def _validate_tools(self) -> list[str]:
        problems: list[str] = []
        names: set[str] = set()
        for i, tool in enumerate(self._tools or []):
            if not tool.name:
                problems.append(f"tools[{i}].name must not be empty")
            elif tool.name in names:
                problems.append(f"duplicate tool name {tool.name!r}")
            names.add(tool.name)

        choice = self._tool_choice
        if choice is not None:
            if choice.type in ("any", "tool") and not self._tools:
                problems.append(f"tool_choice {choice.type!r} requires at least one tool")
            elif choice.type == "tool" and choice.name not in names:
                problems.append(f"tool_choice names undefined tool {choice.name!r}")
        return problems

    def _validate_thinking(self) -> list[str]:
        thinking = self._thinking
        if thinking is None or thinking.type != "enabled":
            return []
        budget = thinking.budget_tokens
        if budget is None or budget < MIN_THINKING_BUDGET:
            return [f"thinking.budget_tokens must be at least {MIN_THINKING_BUDGET}"]
        if _is_int(self._max_tokens) and budget >= self._max_tokens:
            return ["thinking.budget_tokens must be less than max_tokens"]
        return []

    def build(self) -> MessagesRequest:
        """Validate and build the request.

        Returns:
            Immutable MessagesRequest

        Raises:
            InvalidRequestError: Listing every violated constraint
            RuntimeError: If the builder was already consumed
        """
        self._ensure_open()

        problems = self.validate()
        if problems:
            raise InvalidRequestError(f"Invalid request: {'; '.join(problems)}", problems=problems)

        try:
            request = MessagesRequest(
                model=self._model,
                messages=tuple(self._messages),
                max_tokens=self._max_tokens,
                system=tuple(self._system) if isinstance(self._system, list) else self._system,
                metadata=self._metadata,
                stop_sequences=tuple(self._stop_sequences) if self._stop_sequences else None,
                temperature=self._temperature,
                top_p=self._top_p,
                top_k=self._top_k,
                stream=self._stream,
                tools=tuple(self._tools) if self._tools else None,
                tool_choice=self._tool_choice,
                thinking=self._thinking,
            )
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ]
            raise InvalidRequestError(
                f"Invalid request: {'; '.join(problems)}", problems=problems
            ) from e

        self._consumed = True
        return request


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _in_unit_range(value: Any) -> bool:
    # NaN fails both comparisons
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 0.0 <= value <= 1.0


class ClientBuilder:
    """Builder for creating AnthropicClient instances.

    Settings left unset fall back to the environment
    (see ``ClientConfig.from_env``).

    Example:
        >>> client = (
        ...     AnthropicClient.builder()
        ...     .api_key("sk-ant-...")
        ...     .beta("prompt-caching-2024-07-31")
        ...     .timeout(30)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        """Initialize the builder."""
        self._api_key: str | None = None
        self._overrides: dict[str, Any] = {}
        self._http_client: httpx.AsyncClient | None = None

    def api_key(self, key: str) -> ClientBuilder:
        """Set explicit API key.

        Args:
            key: API key

        Returns:
            Self for chaining
        """
        self._api_key = key
        return self

    def base_url(self, url: str) -> ClientBuilder:
        """Override base URL.

        Args:
            url: Base URL for API requests

        Returns:
            Self for chaining
        """
        self._overrides["base_url"] = url
        return self

    def api_version(self, version: str) -> ClientBuilder:
        """Set the ``anthropic-version`` header value.

        Args:
            version: API version date

        Returns:
            Self for chaining
        """
        self._overrides["api_version"] = version
        return self

    def beta(self, *tags: str) -> ClientBuilder:
        """Enable beta features.

        Args:
            *tags: Beta feature tags

        Returns:
            Self for chaining
        """
        self._overrides["beta"] = (*self._overrides.get("beta", ()), *tags)
        return self

    def timeout(self, seconds: float) -> ClientBuilder:
        """Set request timeout.

        Args:
            seconds: Timeout in seconds

        Returns:
            Self for chaining
        """
        self._overrides["timeout"] = seconds
        return self

    def connect_timeout(self, seconds: float) -> ClientBuilder:
        """Set connection timeout.

        Args:
            seconds: Timeout in seconds

        Returns:
            Self for chaining
        """
        self._overrides["connect_timeout"] = seconds
        return self

    def backoff(self, config: RetryConfig | None = None, **kwargs: Any) -> ClientBuilder:
        """Retry rate-limited and overloaded non-streaming requests.

        Streams are never retried.

        Args:
            config: Backoff settings; defaults to ``RetryConfig()``
            **kwargs: RetryConfig fields, used when ``config`` is omitted

        Returns:
            Self for chaining
        """
        self._overrides["retry"] = config or RetryConfig(**kwargs)
        return self

    def http_client(self, client: httpx.AsyncClient) -> ClientBuilder:
        """Use a caller-owned httpx client.

        Args:
            client: Client to send requests with; not closed by the library

        Returns:
            Self for chaining
        """
        self._http_client = client
        return self

    def build(self, environ: dict[str, str] | None = None) -> AnthropicClient:
        """Build the AnthropicClient instance.

        Args:
            environ: Environment used for unset settings; defaults to
                ``os.environ``

        Returns:
            Configured AnthropicClient

        Raises:
            ConfigurationError: If no API key can be resolved
        """
        from anthropic_messages.client.core import AnthropicClient
        from anthropic_messages.config import ClientConfig

        config = ClientConfig.from_env(environ, api_key=self._api_key)
        if self._overrides:
            config = config.with_overrides(**self._overrides)
        return AnthropicClient(config, http_client=self._http_client)
