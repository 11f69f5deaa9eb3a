"""Base classes for projection blocks.

This module provides the foundation for the blocks architecture:
- Block abstract base class
- BlockContext for passing data between blocks
- BlockExecutor for dependency resolution and execution
- Topological sort for DAG execution order
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set
from dataclasses import dataclass, field


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Context object for passing data between blocks.

    Blocks read their inputs from context and write their outputs to context.

    Example:
        context = BlockContext()
        context.set("engine", engine)
        context.set("deposit_schedule", schedule)
        context.set("distributor", "treasury")

        DistributionBlock().execute(context)
        steps_df = context.get("distribution_steps")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get value from context.

        Raises:
            KeyError: If key not found in context
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """Abstract base class for computation blocks.

    A Block declares the context keys it reads (inputs) and writes (outputs)
    and implements execute(). Declared keys let BlockExecutor order blocks
    so every input is produced before it is read.

    Subclass example:
        class PayeeCountBlock(Block):
            def inputs(self) -> List[str]:
                return ["distribution_steps"]

            def outputs(self) -> List[str]:
                return ["payee_count"]

            def execute(self, context: BlockContext) -> None:
                steps = context.get("distribution_steps")
                context.set("payee_count", steps["payee"].nunique())
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""
        pass

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""
        pass

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from context, compute, write outputs to context.

        Raises:
            KeyError: If required inputs not available in context
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks have circular dependencies."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so each runs after the blocks producing its inputs.

    Each pass schedules every block whose produced inputs are already
    available. Inputs nobody produces are expected in the initial context.

    Raises:
        ValueError: If two blocks produce the same output key
        CircularDependencyError: If a pass finds nothing ready to run
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{key}': {producers[key]} and {block}"
                )
            producers[key] = block

    available: Set[str] = set()
    remaining: List[Block] = list(blocks)
    ordered: List[Block] = []
    while remaining:
        ready = [
            block for block in remaining
            if all(key in available or key not in producers for key in block.inputs())
        ]
        if not ready:
            raise CircularDependencyError(
                f"Circular dependency detected among blocks: {remaining}"
            )
        for block in ready:
            remaining.remove(block)
            ordered.append(block)
            available.update(block.outputs())

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Executes blocks in dependency order.

    Example:
        executor = BlockExecutor([RecoupmentBlock(), DistributionBlock()])
        context = BlockContext()
        context.set("engine", engine)
        context.set("deposit_schedule", schedule)
        context.set("distributor", "treasury")
        executor.execute(context)

        context.get("recoupment_summary")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._sorted_blocks: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute all blocks in dependency order.

        Raises:
            CircularDependencyError: If blocks have circular dependencies
            KeyError: If required inputs not available in context
            ValueError: If a block does not write a declared output
        """
        if self._sorted_blocks is None:
            self._sorted_blocks = topological_sort(self.blocks)

        for block in self._sorted_blocks:
            for key in block.inputs():
                if not context.has(key):
                    raise KeyError(
                        f"Block {block} requires input '{key}' but it's not in context. "
                        f"Available keys: {context.keys()}"
                    )
            block.execute(context)
            for key in block.outputs():
                if not context.has(key):
                    raise ValueError(
                        f"Block {block} declared output '{key}' but didn't write it to context"
                    )

        return context
