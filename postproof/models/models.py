from dataclasses import dataclass, asdict, fields
from typing import Any, Generic, List, NamedTuple, Optional, TypeVar, Union
from enum import Enum
import copy

T = TypeVar('T')

class DerivedAddress(NamedTuple):
    """A program-derived address and the bump seed that produced it"""
    address: str
    bump: int

class _Unchanged:
    """Marker for a patch field that must be left as it is on the ledger"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNCHANGED'

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

UNCHANGED = _Unchanged()

@dataclass(frozen=True)
class SetTo(Generic[T]):
    """A patch field carrying a new value, including falsy ones like False or 0"""
    value: T

FieldUpdate = Union[_Unchanged, SetTo[T]]

@dataclass(frozen=True)
class ConfigPatch:
    """
    Partial update of a campaign config.
    Every field is either UNCHANGED or SetTo(value); there is no nullable form,
    so an explicit False or 0 is never mistaken for "leave as is".
    """
    active: FieldUpdate[bool] = UNCHANGED
    max_claimers: FieldUpdate[int] = UNCHANGED
    reward_amount: FieldUpdate[int] = UNCHANGED

    def __post_init__(self):
        for patch_field in fields(self):
            value = getattr(self, patch_field.name)
            if not isinstance(value, (_Unchanged, SetTo)):
                raise TypeError(
                    f"ConfigPatch.{patch_field.name} must be UNCHANGED or SetTo(...), got {value!r}"
                )

    @classmethod
    def of(cls, **values) -> 'ConfigPatch':
        """Build a patch from plain keyword values; omitted fields stay UNCHANGED"""
        unknown = set(values) - {f.name for f in fields(cls)}
        if unknown:
            raise TypeError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        return cls(**{name: SetTo(value) for name, value in values.items()})

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNCHANGED for f in fields(self))

    def changed_fields(self) -> dict[str, Any]:
        """Return {field_name: new_value} for every field that is set"""
        return {
            f.name: getattr(self, f.name).value
            for f in fields(self)
            if isinstance(getattr(self, f.name), SetTo)
        }

@dataclass
class CampaignConfig:
    """
    A reward campaign as stored by the post-proof program.
    Corresponds to the PostProofConfig account.
    """
    address: str
    creator: str
    seed: str
    keywords: List[str]
    claimers_count: int
    reward_amount: int
    max_claimers: int
    active: bool
    created_slot: int

    def copy(self) -> 'CampaignConfig':
        """Create a deep copy of the CampaignConfig"""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return asdict(self)

@dataclass
class VerificationLog:
    """
    Per (verifier, campaign) record written by the program.
    Corresponds to the PostVerificationLog account.
    """
    address: str
    verifier: str
    config: str
    post_url: str
    slot: int
    is_verified: bool
    current_execution_account: Optional[str] = None

@dataclass(frozen=True)
class VerificationRequest:
    """Arguments of one verify_post instruction"""
    request_id: str
    post_url: str
    post_size: int
    tip: int

@dataclass(frozen=True)
class SubmissionHandle:
    """Everything needed to observe a submitted verification later on"""
    signature: str
    request_id: str
    config_address: str
    verification_log_address: str
    execution_account: str
    post_url: str
    post_size: int

class VerificationStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

