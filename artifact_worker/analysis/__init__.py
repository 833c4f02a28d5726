from artifact_worker.analysis.analyzer import Analyzer
from artifact_worker.analysis.base import BaseAnalyzer
from artifact_worker.analysis.factory import AnalyzerFactory

__all__ = ["Analyzer", "AnalyzerFactory", "BaseAnalyzer"]
