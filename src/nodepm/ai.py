"""Language-model helpers: prompt building and the OpenAI chat call."""

from collections.abc import Sequence

import openai
from openai import OpenAI

from nodepm.formatting import format_bytes
from nodepm.models import ProcessRecord

DEFAULT_MODEL = "gpt-4o-mini"
EXPLAIN_MAX_TOKENS = 200
ASK_MAX_TOKENS = 300


class AIError(Exception):
    """The model could not be reached or returned something unusable."""


def build_explain_prompt(process: ProcessRecord) -> str:
    return f"""I have a running process with the following details:

Process Name: {process.name}
PID: {process.pid}
Command: {process.command}
CPU Usage: {process.cpu_percent}%
Memory Usage: {format_bytes(process.memory_bytes)}

Please explain in 2-3 sentences what this process likely does and whether it's normal to see it running. Be concise and practical."""


def build_ask_prompt(question: str, processes: Sequence[ProcessRecord], label: str = "Node.js") -> str:
    """Embed the whole snapshot as a numbered list ahead of the user's question."""
    listing = "\n\n".join(
        f"{index}. [PID {p.pid}] {p.name} - CPU: {p.cpu_percent:.1f}%, "
        f"Memory: {format_bytes(p.memory_bytes)}\n   Command: {p.command}"
        for index, p in enumerate(processes, start=1)
    )
    kind = f"{label} processes" if label else "processes"
    return f"""I have the following {kind} currently running:

{listing}

User question: {question}

Please provide a helpful, concise answer based on the process list above. If identifying specific processes, reference them by their number, PID, and name."""


class AIClient:
    """Thin wrapper over the OpenAI chat completions API."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client: OpenAI | None = None) -> None:
        self._client = client or OpenAI(api_key=api_key)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def complete(self, prompt: str, max_tokens: int) -> str:
        """Send one user message and return the reply text ("" if empty).

        Raises:
            AIError: On any network, auth, rate-limit or response-shape failure.
        """
        try:
            completion = self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            raise AIError(str(e) or type(e).__name__) from e

        try:
            content = completion.choices[0].message.content if completion.choices else None
        except (AttributeError, IndexError, TypeError) as e:
            raise AIError("Malformed response from model") from e
        return content or ""

    def explain(self, process: ProcessRecord) -> str:
        answer = self.complete(build_explain_prompt(process), EXPLAIN_MAX_TOKENS)
        return answer or "No explanation available."

    def ask(self, question: str, processes: Sequence[ProcessRecord], label: str = "Node.js") -> str:
        answer = self.complete(build_ask_prompt(question, processes, label), ASK_MAX_TOKENS)
        return answer or "No answer available."
