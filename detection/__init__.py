from detection.models import Verdict, DetectionStatus
from detection.engine import (
    PhishingDetector,
    dice_coefficient,
    sequence_ratio,
    METRICS
)
