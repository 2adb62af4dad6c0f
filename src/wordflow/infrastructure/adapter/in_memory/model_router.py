import threading

from wordflow.application.port import Context
from wordflow.domain.entity import ModelRequest, ModelResponse
from wordflow.domain.exception import NotFoundError
from wordflow.domain.port import Model
from wordflow.domain.value_object import Provider


class ModelRouter:
    """Routes requests to models by name, with an optional fallback model.

    Safe to share between threads.
    """

    def __init__(self, models: dict[str, Model] | None = None, fallback: Model | None = None):
        """
        :param models: Models keyed by the name requests use
        :type models: dict[str, Model] | None
        :param fallback: Model used for unknown names, none by default
        :type fallback: Model | None
        """
        self._models: dict[str, Model] = {}
        self._fallback = fallback
        self._lock = threading.RLock()
        for name, model in (models or {}).items():
            self.add(name, model)

    def add(self, name: str, model: Model) -> None:
        """Adds a model, replacing any model with the same name."""
        with self._lock:
            self._models[name] = model

    def set_fallback(self, model: Model | None) -> None:
        with self._lock:
            self._fallback = model

    def get(self, name: str) -> Model:
        """
        Returns the model registered under name, or the fallback.

        :param name: The model name
        :type name: str
        :returns: The model
        :rtype: Model
        :raises NotFoundError: If name is unknown and there is no fallback
        """
        with self._lock:
            model = self._models.get(name)
            if model is not None:
                return model
            if self._fallback is not None:
                return self._fallback
        raise NotFoundError("model", name)

    def generate(self, ctx: Context, name: str, request: ModelRequest) -> ModelResponse:
        return self.get(name).generate(ctx, request)

    def embed(self, ctx: Context, name: str, text: str) -> list[float]:
        return self.get(name).embed(ctx, text)

    def list(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._models)

    def bind(self, name: str) -> "RoutedModel":
        """A :class:`Model` that resolves name through this router on every call."""
        return RoutedModel(self, name)


class RoutedModel(Model):
    """Model view of one router entry, so agents and nodes can use a router."""

    def __init__(self, router: ModelRouter, name: str):
        self.router = router
        self.name = name

    def generate(self, ctx: Context, request: ModelRequest) -> ModelResponse:
        return self.router.generate(ctx, self.name, request)

    @property
    def provider(self) -> Provider:
        return self.router.get(self.name).provider

    @property
    def model_name(self) -> str:
        return self.router.get(self.name).model_name

    def embed(self, ctx: Context, text: str) -> list[float]:
        return self.router.embed(ctx, self.name, text)
