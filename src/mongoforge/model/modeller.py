"""Modeller: builds model types from a driver base and wires observers into them."""

import logging

from mongoforge.model.base import BaseModel
from mongoforge.model.lifecycle import Observer

logger = logging.getLogger(__name__)


class Modeller:
    """Creates model types from a driver base class.

    Observers registered with ``use()`` are attached to every model type
    created afterwards, in registration order. Types created earlier keep
    the observers they were created with.

    Example:
        modeller = Modeller(from_client(client, "app"))

        @modeller.use
        async def record(event, model):
            ...

        User = modeller.create_model("user")
    """

    def __init__(self, base: type[BaseModel]):
        self.base = base
        self._observers: list[Observer] = []

    def use(self, observer: Observer) -> Observer:
        if observer not in self._observers:
            self._observers.append(observer)
        return observer

    def create_model(self, name: str) -> type[BaseModel]:
        model = self.base.make_model(name)
        for observer in self._observers:
            model.observers.register(observer)
        logger.debug(
            "Created model %s with %d observer(s)", model.__name__, len(model.observers)
        )
        return model
