from __future__ import annotations

from app.rooftop_engine.benefits import calculate_benefits, compute_benefits

__all__ = ["calculate_benefits", "compute_benefits"]
