# File: prepigo_srs/modules/settings/schemas.py
import logging
import re
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator,
)
from pydantic.alias_generators import to_camel

from prepigo_srs.core.config import Config
from prepigo_srs.core.defaults import DEFAULT_SRS_SETTINGS

logger = logging.getLogger(__name__)


class SchedulerType(str, Enum):
    FSRS = 'fsrs'
    FSRS6 = 'fsrs6'
    SM2 = 'sm2'


class ItemKind(str, Enum):
    FLASHCARD = 'flashcard'
    MCQ = 'mcq'


class LeechAction(str, Enum):
    TAG = 'tag'
    SUSPEND = 'suspend'


class NewCardGatherOrder(str, Enum):
    DECK = 'deck'
    ASCENDING = 'ascending'
    DESCENDING = 'descending'
    RANDOM_NOTES = 'random_notes'
    RANDOM_CARDS = 'random_cards'


class NewCardSortOrder(str, Enum):
    GATHERED = 'gathered'
    TYPE_THEN_GATHERED = 'type_then_gathered'
    TYPE_THEN_RANDOM = 'type_then_random'
    RANDOM_NOTE = 'random_note'
    RANDOM = 'random'


class ReviewSortOrder(str, Enum):
    DUE_DATE_RANDOM = 'due_date_random'
    DUE_DATE_DECK = 'due_date_deck'
    OVERDUE = 'overdue'


class InterleaveOrder(str, Enum):
    MIX = 'mix'
    AFTER = 'after'
    BEFORE = 'before'


# Older spellings still found in stored settings.
_ENUM_ALIASES = {
    'new_card_gather_order': {
        'sequential_ascending': 'ascending',
        'sequential_descending': 'descending',
        'random': 'random_cards',
    },
}

_ENUM_FIELDS = (
    'scheduler', 'leech_action', 'new_card_gather_order', 'new_card_sort_order',
    'new_review_order', 'interday_learning_review_order', 'review_sort_order',
)

_PARAM_FIELDS = ('fsrs_parameters', 'fsrs6_parameters', 'mcq_fsrs_parameters', 'mcq_fsrs6_parameters')

_STEP_FIELDS = ('learning_steps', 'relearning_steps')

_CAMEL_RE = re.compile(r'(?<=[a-z0-9])([A-Z])')


def camel_to_snake(name: str) -> str:
    return _CAMEL_RE.sub(r'_\1', name).replace('-', '_').lower()


def _fallback(model_cls, value, handler, info: ValidationInfo):
    """
    Run the field's validation; on failure log a warning and use the default.

    A missing (None) value takes the default silently. The default comes from
    the 'defaults' mapping in the validation context when one is given,
    otherwise from the field declaration.
    """
    if value is not None:
        try:
            return handler(value)
        except (ValidationError, ValueError, TypeError):
            pass

    context = info.context or {}
    defaults = context.get('defaults') or {}
    name = info.field_name
    if name in defaults:
        default = defaults[name]
        default = tuple(default) if isinstance(default, list) else default
    else:
        default = model_cls.model_fields[name].get_default(call_default_factory=True)

    if value is not None:
        label = f"{context['label']}.{name}" if context.get('label') else name
        shown = default.value if isinstance(default, Enum) else default
        logger.warning(f"[SETTINGS] Invalid value for '{label}': {value!r}. Using default {shown!r}.")
    return default


class FsrsParameters(BaseModel):
    """Parameters of one FSRS model instance."""
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
        allow_inf_nan=False, extra='ignore',
    )

    # Stored retention accepted anywhere in (0, 1); the form's 0.7..0.99 range is a UI concern.
    request_retention: float = Field(0.9, ge=0.01, le=0.999)
    maximum_interval: int = Field(36500, ge=1)
    w: Tuple[float, ...] = ()
    enable_fuzz: bool = False

    @field_validator('*', mode='wrap')
    @classmethod
    def _soft_default(cls, value, handler, info: ValidationInfo):
        return _fallback(cls, value, handler, info)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], defaults: Dict[str, Any], name: str = 'fsrs_parameters') -> 'FsrsParameters':
        """Validate one parameter set; absent or invalid keys take that set's defaults."""
        data = dict(data) if isinstance(data, dict) else {}
        for key, info in cls.model_fields.items():
            if key not in data and info.alias not in data and key in defaults:
                data[key] = defaults[key]
        return cls.model_validate(data, context={'defaults': defaults, 'label': name})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')


def _default_params(key: str) -> FsrsParameters:
    return FsrsParameters.from_dict(None, DEFAULT_SRS_SETTINGS[key], key)


def _default_scheduler() -> SchedulerType:
    """PREPIGO_DEFAULT_SCHEDULER when set and valid, else the built-in default."""
    default = SchedulerType(DEFAULT_SRS_SETTINGS['scheduler'])
    raw = Config.DEFAULT_SCHEDULER
    if not raw:
        return default
    try:
        return SchedulerType(camel_to_snake(str(raw).strip()))
    except ValueError:
        logger.warning(f"[SETTINGS] Invalid value for 'PREPIGO_DEFAULT_SCHEDULER': {raw!r}. "
                       f"Using default {default.value!r}.")
        return default


class EffectiveSettings(BaseModel):
    """
    Resolved scheduling configuration handed to every engine call.

    Keys may be snake_case or camelCase. Missing keys take the default from
    DEFAULT_SRS_SETTINGS; values of the wrong type or out of range are
    replaced by the default and a warning is logged, so validating a dict
    never raises.
    """
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True,
        allow_inf_nan=False, extra='ignore',
    )

    scheduler: SchedulerType = Field(default_factory=_default_scheduler)

    fsrs_parameters: FsrsParameters = Field(default_factory=lambda: _default_params('fsrs_parameters'))
    fsrs6_parameters: FsrsParameters = Field(default_factory=lambda: _default_params('fsrs6_parameters'))
    mcq_fsrs_parameters: FsrsParameters = Field(default_factory=lambda: _default_params('mcq_fsrs_parameters'))
    mcq_fsrs6_parameters: FsrsParameters = Field(default_factory=lambda: _default_params('mcq_fsrs6_parameters'))

    sm2_starting_ease: float = Field(DEFAULT_SRS_SETTINGS['sm2_starting_ease'], ge=1.3)
    sm2_min_easiness_factor: float = Field(DEFAULT_SRS_SETTINGS['sm2_min_easiness_factor'], ge=1.3)
    sm2_easy_bonus: float = Field(DEFAULT_SRS_SETTINGS['sm2_easy_bonus'], ge=1.0)
    sm2_interval_modifier: float = Field(DEFAULT_SRS_SETTINGS['sm2_interval_modifier'], ge=0.1)
    sm2_hard_interval_multiplier: float = Field(DEFAULT_SRS_SETTINGS['sm2_hard_interval_multiplier'], ge=1.0)
    sm2_lapsed_interval_multiplier: float = Field(DEFAULT_SRS_SETTINGS['sm2_lapsed_interval_multiplier'], ge=0.0, le=1.0)
    sm2_maximum_interval: int = Field(DEFAULT_SRS_SETTINGS['sm2_maximum_interval'], ge=1)
    sm2_graduating_interval: int = Field(DEFAULT_SRS_SETTINGS['sm2_graduating_interval'], ge=1)
    sm2_easy_interval: int = Field(DEFAULT_SRS_SETTINGS['sm2_easy_interval'], ge=1)
    sm2_minimum_interval: int = Field(DEFAULT_SRS_SETTINGS['sm2_minimum_interval'], ge=1)

    learning_steps: str = DEFAULT_SRS_SETTINGS['learning_steps']
    relearning_steps: str = DEFAULT_SRS_SETTINGS['relearning_steps']

    leech_threshold: int = Field(DEFAULT_SRS_SETTINGS['leech_threshold'], ge=1)
    leech_action: LeechAction = LeechAction(DEFAULT_SRS_SETTINGS['leech_action'])

    new_cards_per_day: int = Field(DEFAULT_SRS_SETTINGS['new_cards_per_day'], ge=0)
    max_reviews_per_day: int = Field(DEFAULT_SRS_SETTINGS['max_reviews_per_day'], ge=0)
    mcq_new_cards_per_day: int = Field(DEFAULT_SRS_SETTINGS['mcq_new_cards_per_day'], ge=0)
    mcq_max_reviews_per_day: int = Field(DEFAULT_SRS_SETTINGS['mcq_max_reviews_per_day'], ge=0)

    new_card_gather_order: NewCardGatherOrder = NewCardGatherOrder(DEFAULT_SRS_SETTINGS['new_card_gather_order'])
    new_card_sort_order: NewCardSortOrder = NewCardSortOrder(DEFAULT_SRS_SETTINGS['new_card_sort_order'])
    new_review_order: InterleaveOrder = InterleaveOrder(DEFAULT_SRS_SETTINGS['new_review_order'])
    interday_learning_review_order: InterleaveOrder = InterleaveOrder(DEFAULT_SRS_SETTINGS['interday_learning_review_order'])
    review_sort_order: ReviewSortOrder = ReviewSortOrder(DEFAULT_SRS_SETTINGS['review_sort_order'])

    bury_new_siblings: bool = DEFAULT_SRS_SETTINGS['bury_new_siblings']
    bury_review_siblings: bool = DEFAULT_SRS_SETTINGS['bury_review_siblings']
    bury_interday_learning_siblings: bool = DEFAULT_SRS_SETTINGS['bury_interday_learning_siblings']

    maturity_threshold_days: int = Field(DEFAULT_SRS_SETTINGS['maturity_threshold_days'], ge=1)

    @field_validator(*_ENUM_FIELDS, mode='before')
    @classmethod
    def _normalize_enum(cls, value, info: ValidationInfo):
        # 'typeThenRandom', 'sequential-ascending' and friends
        if isinstance(value, str) and not isinstance(value, Enum):
            key = camel_to_snake(value.strip())
            return _ENUM_ALIASES.get(info.field_name, {}).get(key, key)
        return value

    @field_validator(*_STEP_FIELDS, mode='before')
    @classmethod
    def _join_steps(cls, value):
        if isinstance(value, (list, tuple)):
            return ' '.join(str(s) for s in value)
        if isinstance(value, str):
            return value.strip()
        raise ValueError('learning steps must be a string or a list')

    @field_validator(*_PARAM_FIELDS, mode='before')
    @classmethod
    def _params_over_set_defaults(cls, value, info: ValidationInfo):
        if isinstance(value, FsrsParameters):
            return value
        if not isinstance(value, dict):
            raise ValueError('parameter set must be a mapping')
        return FsrsParameters.from_dict(value, DEFAULT_SRS_SETTINGS[info.field_name], info.field_name)

    @field_validator('*', mode='wrap')
    @classmethod
    def _soft_default(cls, value, handler, info: ValidationInfo):
        return _fallback(cls, value, handler, info)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]] = None) -> 'EffectiveSettings':
        return cls.model_validate(data or {})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')

    @property
    def active_fsrs_parameters(self) -> FsrsParameters:
        if self.scheduler == SchedulerType.FSRS6:
            return self.fsrs6_parameters
        return self.fsrs_parameters

    def for_item_kind(self, kind) -> 'EffectiveSettings':
        """Swap in the MCQ-specific FSRS parameters and daily caps for MCQ items."""
        if ItemKind(kind) != ItemKind.MCQ:
            return self
        return self.model_copy(update={
            'fsrs_parameters': self.mcq_fsrs_parameters,
            'fsrs6_parameters': self.mcq_fsrs6_parameters,
            'new_cards_per_day': self.mcq_new_cards_per_day,
            'max_reviews_per_day': self.mcq_max_reviews_per_day,
        })


class DeckNode(BaseModel):
    """A deck or question bank in the hierarchy, with an optional override."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    id: str
    name: str = ''
    has_custom_settings: bool = False
    settings: Optional[EffectiveSettings] = Field(
        None, validation_alias=AliasChoices('settings', 'srs_settings', 'srsSettings'))
    children: List['DeckNode'] = Field(
        default_factory=list, validation_alias=AliasChoices('children', 'sub_decks', 'subDecks'))

    @field_validator('id', mode='before')
    @classmethod
    def _id_as_text(cls, value):
        return str(value)

    @field_validator('settings', 'children', mode='before')
    @classmethod
    def _empty_as_missing(cls, value, info: ValidationInfo):
        if not value:
            return None if info.field_name == 'settings' else []
        return value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeckNode':
        return cls.model_validate(data)
