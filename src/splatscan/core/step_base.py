"""Pipeline step base class.

A step is a typed transformation ``Input -> Output`` parameterised by a
``Config``, all pydantic models. The runner chains steps by dumping one
step's output into the next step's input model; ``splatscan schema`` prints
the three models of a step.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)
ConfigT = TypeVar("ConfigT", bound=BaseModel)

logger = logging.getLogger(__name__)


class BaseStep(ABC, Generic[InputT, OutputT, ConfigT]):
    """One stage of the scan pipeline.

    Subclasses set ``name`` and the three model types, then implement
    ``validate_inputs`` (cheap existence checks, no work) and ``run``.
    Intermediate artifacts go under ``data_root/interim``.
    """

    name: ClassVar[str] = ""
    input_type: ClassVar[type[BaseModel]]
    output_type: ClassVar[type[BaseModel]]
    config_type: ClassVar[type[BaseModel]]

    def __init__(self, config: ConfigT, data_root: Path):
        self.config = config
        self.data_root = Path(data_root)

    @abstractmethod
    def validate_inputs(self, inputs: InputT) -> bool:
        ...

    @abstractmethod
    def run(self, inputs: InputT) -> OutputT:
        ...

    def execute(self, inputs: InputT) -> OutputT:
        """Validate, then run and log the elapsed time.

        Raises:
            ValueError: ``validate_inputs`` rejected the inputs.
        """
        label = self.name or type(self).__name__
        if not self.validate_inputs(inputs):
            raise ValueError(f"[{label}] Input validation failed")

        logger.info(f"[{label}] Starting with {self.config!r}")
        t0 = time.time()
        output = self.run(inputs)
        logger.info(f"[{label}] Done in {time.time() - t0:.1f}s")
        return output

    @classmethod
    def get_input_schema(cls) -> dict:
        return cls.input_type.model_json_schema()

    @classmethod
    def get_output_schema(cls) -> dict:
        return cls.output_type.model_json_schema()

    @classmethod
    def get_config_schema(cls) -> dict:
        return cls.config_type.model_json_schema()

    @classmethod
    def missing_inputs(cls, provided: dict) -> list[str]:
        """Required input fields absent from ``provided``."""
        return [f for f in cls.get_input_schema().get("required", []) if f not in provided]
