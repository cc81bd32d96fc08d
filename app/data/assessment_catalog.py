from typing import Dict, Optional

from app.core.constants import DifficultyEnum
from app.schemas.profile import AssessmentProfile, ProctoringData

_PROFILES = [
    AssessmentProfile(
        task_title="Fintech 101",
        title="Fintech 101 - Assessment",
        description="Assessment on fintech fundamentals and concepts related to the Indian payment ecosystem.",
        total_questions=20,
        difficulty=DifficultyEnum.BEGINNER,
        topics=["fintech basics", "payment systems", "digital banking", "regulations"],
        time_limit=30,
        proctoring_enabled=False,
    ),
    AssessmentProfile(
        task_title="Core Payments",
        title="Core Payments - Assessment",
        description="Assessment on payment processing, gateways, merchants and settlements.",
        total_questions=25,
        difficulty=DifficultyEnum.INTERMEDIATE,
        topics=["payment processing", "gateways", "merchants", "settlements"],
        time_limit=45,
    ),
    AssessmentProfile(
        task_title="Core Payments and Platform",
        title="Core Payments and Platform - Assessment",
        description="Assessment on platform architecture, payment flows, APIs and integration.",
        total_questions=30,
        difficulty=DifficultyEnum.INTERMEDIATE,
        topics=["platform architecture", "payment flows", "APIs", "integration"],
        time_limit=45,
    ),
    AssessmentProfile(
        task_title="Merchant and Admin Dashboard",
        title="Merchant and Admin Dashboard - Assessment",
        description="Assessment on dashboard navigation, merchant management and reporting.",
        total_questions=20,
        difficulty=DifficultyEnum.BEGINNER,
        topics=["dashboard navigation", "merchant management", "admin functions", "reporting"],
        time_limit=30,
    ),
    AssessmentProfile(
        task_title="Recurring",
        title="Recurring Payments - Assessment",
        description="Assessment on subscription models, billing cycles and cancellation flows.",
        total_questions=15,
        difficulty=DifficultyEnum.INTERMEDIATE,
        topics=["subscription models", "billing cycles", "payment methods", "cancellation"],
        time_limit=30,
    ),
    AssessmentProfile(
        task_title="Products 2.0",
        title="Products 2.0 - Assessment",
        description="Assessment on new features, the product roadmap and implementation details.",
        total_questions=25,
        difficulty=DifficultyEnum.ADVANCED,
        topics=["new features", "product roadmap", "technical specifications", "implementation"],
        time_limit=40,
    ),
    AssessmentProfile(
        task_title="Cross Border Payments",
        title="Cross Border Payments - Assessment",
        description="Assessment on international payments, compliance and currency conversion.",
        total_questions=20,
        difficulty=DifficultyEnum.ADVANCED,
        topics=["international payments", "compliance", "currency conversion", "regulations"],
        time_limit=35,
    ),
]

ASSESSMENT_PROFILES: Dict[str, AssessmentProfile] = {p.task_title: p for p in _PROFILES}

PROCTORING_DATA = ProctoringData.model_validate({
    "proctoring": {
        "screenRecording": {"enabled": True, "quality": "medium", "frameRate": 1},
        "violations": {
            "tabSwitch": {"enabled": True, "maxAllowed": 3, "severity": "medium"},
            "windowFocusLoss": {"enabled": True, "maxAllowed": 5, "severity": "low"},
            "copyPaste": {"enabled": True, "maxAllowed": 0, "severity": "high"},
            "rightClick": {"enabled": True, "maxAllowed": 0, "severity": "high"},
            "keyboardShortcuts": {"enabled": True, "allowed": ["F5", "Ctrl+R"], "severity": "medium"},
            "multipleWindows": {"enabled": True, "maxAllowed": 0, "severity": "high"},
        },
        "warnings": {
            "firstViolation": "This is your first warning. Please focus on the assessment.",
            "secondViolation": "This is your second warning. Further violations may result in assessment termination.",
            "finalWarning": "This is your final warning. Any further violations will result in immediate assessment termination.",
        },
    },
    "messages": {
        "start": {
            "title": "Proctored Assessment Starting",
            "content": (
                "Your proctored assessment is about to begin. Please ensure you have a stable internet "
                "connection and are in a quiet environment. The assessment will be monitored for academic integrity."
            ),
        },
        "instructions": [
            "Do not switch tabs or open new windows during the assessment",
            "Do not use copy-paste functionality",
            "Do not right-click on the page",
            "Ensure your camera and microphone are working properly",
            "You will be monitored throughout the assessment",
            "Any violations will result in warnings or termination",
        ],
        "success": {
            "title": "Assessment Completed Successfully",
            "content": (
                "Congratulations! You have successfully completed the assessment with a passing score. "
                "Your results have been submitted for review."
            ),
        },
        "failure": {
            "title": "Assessment Not Passed",
            "content": (
                "Unfortunately, you did not achieve the required passing score. Please prepare well and try again. "
                "You can retake this assessment after reviewing the material."
            ),
        },
        "violation": {
            "title": "Assessment Violation Detected",
            "content": "A violation has been detected during your assessment. Please review the rules and continue with the assessment.",
        },
        "terminated": {
            "title": "Assessment Terminated",
            "content": "Your assessment has been terminated due to multiple violations. Please contact your administrator for further assistance.",
        },
    },
})


def get_profile(task_title: str) -> Optional[AssessmentProfile]:
    return ASSESSMENT_PROFILES.get(task_title)
