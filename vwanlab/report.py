"""
Report building blocks shared by the orchestrators.

A report is an ordered list of sections, each a titled list of labeled
lines. Lines are written to the orchestrator's logger as they are added so
the log reads in the same order as the report. Failures that have a natural
fallback are recorded as faults on the section instead of aborting it.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

INDENT = "  "


@dataclass
class Fault:
    """A caught failure and the entity it affected."""
    source: str
    message: str

    @classmethod
    def from_exception(cls, source: str, exc: BaseException) -> "Fault":
        return cls(source=source, message=str(exc) or exc.__class__.__name__)


@dataclass
class Outcome(Generic[T]):
    """Either a value or the fault that prevented producing it."""
    value: Optional[T] = None
    fault: Optional[Fault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    def value_or(self, default: T) -> T:
        return self.value if self.ok else default


async def attempt(source: str, func: Callable[[], Awaitable[T]]) -> Outcome[T]:
    """
    Await ``func`` and fold any exception into an Outcome.

    Args:
        source: Name of the entity being fetched, used in the fault
        func: Zero-argument coroutine function

    Returns:
        Outcome holding the value or the fault
    """
    try:
        return Outcome(value=await func())
    except Exception as e:
        return Outcome(fault=Fault.from_exception(source, e))


@dataclass
class ReportLine:
    text: str
    level: int = logging.INFO
    indent: int = 0

    def render(self) -> str:
        return f"{INDENT * self.indent}{self.text}"


@dataclass
class ReportSection:
    """A titled group of report lines."""
    title: str
    logger: logging.Logger
    header: bool = True
    lines: List[ReportLine] = field(default_factory=list)
    faults: List[Fault] = field(default_factory=list)

    def __post_init__(self):
        if self.header:
            self.logger.info(f"=== {self.title} ===")

    def add(self, text: str, indent: int = 0, level: int = logging.INFO) -> ReportLine:
        line = ReportLine(text=text, level=level, indent=indent)
        self.lines.append(line)
        self.logger.log(level, line.render())
        return line

    def warn(self, text: str, indent: int = 0) -> ReportLine:
        return self.add(text, indent=indent, level=logging.WARNING)

    def error(self, text: str, indent: int = 0) -> ReportLine:
        return self.add(text, indent=indent, level=logging.ERROR)

    def degrade(self, fault: Fault, text: Optional[str] = None, indent: int = 0) -> None:
        """Record a fault and write it as a warning next to the affected entry."""
        self.faults.append(fault)
        self.warn(text or f"Error in {fault.source}: {fault.message}", indent=indent)

    @property
    def degraded(self) -> bool:
        return bool(self.faults)

    def texts(self) -> List[str]:
        return [line.text for line in self.lines]


class Report:
    """Ordered collection of report sections."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.sections: List[ReportSection] = []

    def section(self, title: str, header: bool = True) -> ReportSection:
        section = ReportSection(title=title, logger=self.logger, header=header)
        self.sections.append(section)
        return section

    async def isolated(
        self,
        title: str,
        build: Callable[[ReportSection], Awaitable[None]],
        header: bool = True,
    ) -> ReportSection:
        """
        Build a section, turning a raised fault into a degraded section.

        Args:
            title: Section title
            build: Coroutine function that fills the section
            header: Whether to log the section header

        Returns:
            The section, complete or degraded
        """
        section = self.section(title, header=header)
        try:
            await build(section)
        except Exception as e:
            fault = Fault.from_exception(title, e)
            section.degrade(fault, f"Error checking {title}: {fault.message}")
        return section

    def get(self, title: str) -> Optional[ReportSection]:
        for section in self.sections:
            if section.title == title:
                return section
        return None

    @property
    def faults(self) -> List[Fault]:
        return [fault for section in self.sections for fault in section.faults]

    @property
    def degraded(self) -> bool:
        return bool(self.faults)
