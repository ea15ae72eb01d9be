"""
Services Module
Business logic layer for the MediTrack application
"""

from services.auth_service import AuthService, auth_service
from services.medication_service import MedicationService, medication_service
from services.adherence_service import AdherenceService, adherence_service
from services.care_service import CareService, care_service
from services.prediction_service import PredictionService, prediction_service, predict
from services.llm_service import LLMService, llm_service


__all__ = [
    # Service classes
    "AuthService",
    "MedicationService",
    "AdherenceService",
    "CareService",
    "PredictionService",
    "LLMService",
    # Singleton instances
    "auth_service",
    "medication_service",
    "adherence_service",
    "care_service",
    "prediction_service",
    "llm_service",
    # Pure functions
    "predict",
]
