"""
Extractor module for LLM-based statement field extraction.
"""
from .llm_client import LLMCallError, StatementExtractor

__all__ = ['StatementExtractor', 'LLMCallError']
