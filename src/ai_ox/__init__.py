"""
ai_ox - Unified async clients for AI model providers

Thin clients for Anthropic, Gemini, OpenAI, Mistral, Groq and OpenRouter
behind one Model interface, plus tools, a tool-calling Agent and a
node-based Workflow runner.

Example usage:
    from ai_ox import Agent, get_registry

    model = get_registry().create("anthropic/claude-sonnet-4-5")
    response = await Agent(model).run("Hello!")
"""

__version__ = "0.1.0"

from ai_ox.agent import (
    Agent,
    AgentError,
    AgentEvent,
    MaxIterationsReachedError,
)
from ai_ox.content import (
    FilePart,
    ImagePart,
    Message,
    MessageRole,
    Part,
    StreamEvent,
    StreamStop,
    TextDelta,
    TextPart,
    ToolCallEvent,
    ToolResultPart,
    ToolUsePart,
    UsageEvent,
)
from ai_ox.errors import (
    GenerateContentError,
    MessageConversionError,
    MissingApiKeyError,
    NoResponseError,
    ProviderRequestError,
    ResponseParsingError,
    UnsupportedFeatureError,
)
from ai_ox.models import (
    AnthropicModel,
    GeminiModel,
    GenerationConfig,
    GroqModel,
    MistralModel,
    Model,
    ModelRequest,
    ModelResponse,
    OpenAIModel,
    OpenRouterModel,
    get_registry,
)
from ai_ox.tools import FunctionToolBox, ToolBox, ToolCall, ToolResult, ToolSet, tool
from ai_ox.usage import Modality, Usage
from ai_ox.workflow import End, Node, RunContext, Workflow

__all__ = [
    "__version__",
    # Agent
    "Agent",
    "AgentError",
    "AgentEvent",
    "MaxIterationsReachedError",
    # Content
    "FilePart",
    "ImagePart",
    "Message",
    "MessageRole",
    "Part",
    "StreamEvent",
    "StreamStop",
    "TextDelta",
    "TextPart",
    "ToolCallEvent",
    "ToolResultPart",
    "ToolUsePart",
    "UsageEvent",
    # Errors
    "GenerateContentError",
    "MessageConversionError",
    "MissingApiKeyError",
    "NoResponseError",
    "ProviderRequestError",
    "ResponseParsingError",
    "UnsupportedFeatureError",
    # Models
    "AnthropicModel",
    "GeminiModel",
    "GenerationConfig",
    "GroqModel",
    "MistralModel",
    "Model",
    "ModelRequest",
    "ModelResponse",
    "OpenAIModel",
    "OpenRouterModel",
    "get_registry",
    # Tools
    "FunctionToolBox",
    "ToolBox",
    "ToolCall",
    "ToolResult",
    "ToolSet",
    "tool",
    # Usage
    "Modality",
    "Usage",
    # Workflow
    "End",
    "Node",
    "RunContext",
    "Workflow",
]
