import threading
from collections import deque
from collections.abc import Callable, Iterable

from wordflow.application.port import Context
from wordflow.domain.entity import ModelRequest, ModelResponse
from wordflow.domain.exception import ExecutionError
from wordflow.domain.port import Model
from wordflow.domain.value_object import Provider, Usage


class ScriptedModel(Model):
    """A model that replays canned replies instead of running inference.

    Replies are taken from the queue first; once it is empty ``respond`` is
    called with the request. Every request is kept in ``requests``.
    """

    def __init__(
        self,
        replies: Iterable[str] = (),
        respond: Callable[[ModelRequest], str] | None = None,
        name: str = "scripted",
        provider: Provider = Provider.CUSTOM,
        dimensions: int = 8,
    ):
        self._replies = deque(replies)
        self._respond = respond
        self._name = name
        self._provider = provider
        self._dimensions = dimensions
        self._lock = threading.Lock()
        self.requests: list[ModelRequest] = []

    def queue(self, *replies: str) -> "ScriptedModel":
        with self._lock:
            self._replies.extend(replies)
        return self

    def generate(self, ctx: Context, request: ModelRequest) -> ModelResponse:
        ctx.raise_if_cancelled()
        with self._lock:
            self.requests.append(request)
            reply = self._replies.popleft() if self._replies else None
        if reply is None:
            if self._respond is None:
                raise ExecutionError(f"model {self._name}: no scripted reply left")
            reply = self._respond(request)
        prompt_tokens = len(request.prompt.split())
        completion_tokens = len(reply.split())
        return ModelResponse(
            text=reply,
            usage=Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            model_name=self._name,
            provider=self._provider,
            finish_reason="stop",
        )

    @property
    def provider(self) -> Provider:
        return self._provider

    @property
    def model_name(self) -> str:
        return self._name

    def embed(self, ctx: Context, text: str) -> list[float]:
        # Character histogram folded into a fixed number of buckets
        ctx.raise_if_cancelled()
        vector = [0.0] * self._dimensions
        for ch in text:
            vector[ord(ch) % self._dimensions] += 1.0
        return vector
