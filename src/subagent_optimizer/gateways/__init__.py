# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from .base import AgentGateway, CallableGateway, extract_text
from .litellm_gateway import LiteLLMGateway, ModelConfig

__all__ = ["AgentGateway", "CallableGateway", "extract_text", "LiteLLMGateway", "ModelConfig"]
