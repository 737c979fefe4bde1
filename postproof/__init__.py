from postproof.models.models import (
    UNCHANGED,
    CampaignConfig,
    ConfigPatch,
    SetTo,
    SubmissionHandle,
    VerificationLog,
    VerificationRequest,
    VerificationStatus,
)
from postproof.configuration.configuration import ClientConfig, load_client_config
from postproof.container.service_container import ServiceContainer

__version__ = '0.1.0'
