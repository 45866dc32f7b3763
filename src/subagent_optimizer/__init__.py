# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from .api import OptimizerParameters, invocation_message, optimize, optimize_async
from .config import OptimizerConfig
from .core.callbacks import CompositeCallback, LoggingCallback, OptimizerCallback
from .core.engine import OptimizationEngine, RunState
from .core.records import RoundRecord, VariantResult, Verdict
from .core.report import Report, build_report
from .core.result import LoopStatus, OptimizationResult
from .gateways import AgentGateway, CallableGateway, LiteLLMGateway, ModelConfig
from .strategies.evolver import evolve_population
from .strategies.variants import SEED_VARIANTS, PromptVariant, default_variants
from .utils.stop_condition import (
    CancellationToken,
    CompositeStopper,
    FileStopper,
    NoDecisiveRoundStopper,
    SignalStopper,
    TimeoutStopCondition,
)
