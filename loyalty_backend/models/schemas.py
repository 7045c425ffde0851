"""
Pydantic models for the loyalty rule configuration engine.

This module defines the declarative configuration structures edited by the
onboarding wizard:

- Attribute catalog and KPI counters
- Earning rules (base rate, category multipliers, threshold earning,
  behavioral bonuses)
- Tiers and the value program aggregate (value-type variants, hybrid strategies)
- Signal templates and queues
- Organization hierarchy levels
- Request bodies used by the API layer

Design notes:
- Every configuration model is frozen. Updates never mutate a model in place;
  the services build a new instance and callers replace their reference.
- Variant records are tagged unions. ``valueConfig`` is discriminated by
  ``valueType`` and the birthday bonus by ``rewardType``, so fields that belong
  to another variant are rejected at validation time.
- Field names are camelCase to match the JSON consumed by the wizard front end.
- Default values of each model are the documented defaults used when a
  sub-rule is first enabled.

All models use Pydantic v2 syntax.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from loyalty_backend.models.enums import (
    EarningPeriod,
    HierarchyDirection,
    HybridStrategy,
    SignalCondition,
    SignalMetric,
    SignalOperator,
    SignalPeriod,
    SignalPriority,
    SignalUnit,
    TierColor,
    ValueType,
    VoucherType,
)


class ConfigModel(BaseModel):
    """Base for all configuration records: immutable and closed to unknown fields."""
    model_config = ConfigDict(extra='forbid', frozen=True)


# =============================================================================
# Attribute Catalog & KPI Models
# =============================================================================


class KPIWeight(ConfigModel):
    """
    Contribution of one enabled attribute to the aggregate KPI counters.
    """
    kpis: int = Field(default=0, ge=0, description="Additional KPIs unlocked")
    analytics: int = Field(default=0, ge=0, description="Additional analytics views unlocked")
    ai: int = Field(default=0, ge=0, description="Additional AI models unlocked")


class AttributeConfig(ConfigModel):
    """
    State of one entity attribute in the catalog.

    The weight only counts toward the KPI aggregates while ``enabled`` is true.
    Required attributes (identity fields) cannot be disabled.
    """
    enabled: bool = Field(..., description="Whether the attribute is collected")
    kpiWeight: Optional[KPIWeight] = Field(
        default=None,
        description="KPI contribution while enabled; None contributes nothing"
    )
    required: bool = Field(default=False, description="Identity field that cannot be disabled")
    dataType: Optional[str] = Field(default=None, description="Data type of a custom attribute")


class AttributeCatalog(ConfigModel):
    """
    Attribute set of the entity currently being configured.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "entity": "store",
                "attributes": {
                    "Store ID": {"enabled": True, "required": True},
                    "Square Footage": {
                        "enabled": True,
                        "kpiWeight": {"kpis": 3, "analytics": 2, "ai": 1}
                    }
                }
            }
        }
    )

    entity: str = Field(..., min_length=1, description="Entity id (store, corporate, ...)")
    attributes: Dict[str, AttributeConfig] = Field(
        default_factory=dict,
        description="Attribute name to attribute state"
    )


class KPICounters(ConfigModel):
    """
    Aggregate KPI counters derived from the enabled attributes.

    Never edited by hand; always recomputed in full by derive_kpis().
    """
    model_config = ConfigDict(
        json_schema_extra={"example": {"total": 17, "analytics": 9, "ai": 6}}
    )

    total: int = Field(..., ge=0, description="Number of KPIs available")
    analytics: int = Field(..., ge=0, description="Number of analytics views available")
    ai: int = Field(..., ge=0, description="Number of AI models available")


# =============================================================================
# Earning Rule Models
# =============================================================================


class BaseRate(ConfigModel):
    """Continuous accrual: ``unitsEarned`` for every ``perSpend`` of spend."""
    unitsEarned: float = Field(default=1, description="Units earned per spend block")
    perSpend: float = Field(default=1, description="Spend block size")


class SpendThresholdRule(ConfigModel):
    """Reward issued once spend reaches ``spend``."""
    enabled: bool = False
    spend: float = 100
    reward: float = 10


class PurchaseFrequencyRule(ConfigModel):
    """Reward issued every ``purchases`` purchases."""
    enabled: bool = False
    purchases: int = 5
    reward: float = 25


class PeriodSpendRule(ConfigModel):
    """Reward issued when spend within ``period`` reaches ``spend``."""
    enabled: bool = False
    spend: float = 500
    period: EarningPeriod = EarningPeriod.MONTHLY
    reward: float = 50


class ThresholdEarning(ConfigModel):
    """
    Threshold-based earning rules used by credits and vouchers programs.

    A sub-rule that is None has never been configured; the earning rule
    service fills it from its default factory the first time it is updated.
    """
    spendThreshold: Optional[SpendThresholdRule] = None
    purchaseFrequency: Optional[PurchaseFrequencyRule] = None
    periodSpend: Optional[PeriodSpendRule] = None


class FrequencyBonus(ConfigModel):
    """Bonus points after ``visits`` visits."""
    enabled: bool = False
    visits: int = 3
    points: float = 50


class SpendBonus(ConfigModel):
    """Bonus points once a single spend reaches ``spend``."""
    enabled: bool = False
    spend: float = 100
    points: float = 100


class BirthdayMultiplierBonus(ConfigModel):
    """Birthday bonus that multiplies earning for the day."""
    enabled: bool = False
    rewardType: Literal["multiplier"] = "multiplier"
    multiplier: float = 2


class BirthdayPointsBonus(ConfigModel):
    """Birthday bonus granting a flat number of points."""
    enabled: bool = False
    rewardType: Literal["points"] = "points"
    points: float = 500


class BirthdayVoucherBonus(ConfigModel):
    """
    Birthday bonus granting a voucher.

    ``voucherSku`` belongs to SKU vouchers and ``voucherValue`` to value
    vouchers; the field of the other flavor is always None.
    """
    enabled: bool = False
    rewardType: Literal["voucher"] = "voucher"
    voucherType: VoucherType = VoucherType.VALUE
    voucherSku: Optional[str] = None
    voucherValue: Optional[float] = 10

    @model_validator(mode='after')
    def _check_voucher_flavor(self) -> 'BirthdayVoucherBonus':
        if self.voucherType == VoucherType.SKU and self.voucherValue is not None:
            raise ValueError("voucherValue is not allowed for SKU vouchers")
        if self.voucherType == VoucherType.VALUE and self.voucherSku is not None:
            raise ValueError("voucherSku is not allowed for value vouchers")
        return self


BirthdayBonus = Annotated[
    Union[BirthdayMultiplierBonus, BirthdayPointsBonus, BirthdayVoucherBonus],
    Field(discriminator='rewardType'),
]


class FirstPurchaseBonus(ConfigModel):
    """Bonus points on the first purchase."""
    enabled: bool = False
    points: float = 500


class BehavioralBonuses(ConfigModel):
    """Independently enablable behavioral bonuses."""
    frequencyBonus: Optional[FrequencyBonus] = None
    thresholdBonus: Optional[SpendBonus] = None
    birthday: Optional[BirthdayBonus] = None
    firstPurchase: Optional[FirstPurchaseBonus] = None


class EarningRules(ConfigModel):
    """
    How value is earned, either program-wide or for one tier.

    ``baseRate`` and ``categoryMultipliers`` apply to continuous value types
    (points, cashback); ``thresholdEarning`` applies to threshold value types
    (credits, vouchers); ``behavioralBonuses`` apply to every value type.
    """
    baseRate: BaseRate = Field(default_factory=BaseRate)
    categoryMultipliers: Dict[str, float] = Field(
        default_factory=dict,
        description="Category name to earning multiplier"
    )
    thresholdEarning: ThresholdEarning = Field(default_factory=ThresholdEarning)
    behavioralBonuses: BehavioralBonuses = Field(default_factory=BehavioralBonuses)


# =============================================================================
# Tier Model
# =============================================================================


class Tier(ConfigModel):
    """
    Named customer segment with its own earning-rule override.

    Tiers are displayed by ascending threshold but identified by ``id``.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "tier_3f1c0f3e9d2a4b7c8e6f5a4b3c2d1e0f",
                "name": "Gold",
                "description": "Top spenders",
                "threshold": 1000,
                "color": "gold",
                "benefits": ["Free shipping", "Early access"],
            }
        }
    )

    id: str = Field(..., min_length=1, description="Stable tier identifier")
    name: str = Field(..., description="Display name")
    description: str = Field(default="", description="Tier description")
    threshold: float = Field(..., description="Qualifying spend or points threshold")
    color: TierColor = Field(..., description="Badge color")
    benefits: List[str] = Field(default_factory=list, description="Ordered benefit labels")
    earningRules: EarningRules = Field(default_factory=EarningRules)


# =============================================================================
# Value Config Variants
# =============================================================================


class CommonValueOptions(ConfigModel):
    """Options shared by every value-type variant."""
    allowFractional: bool = True
    enablePooling: bool = False
    allowTransfers: bool = False
    enablePurchase: bool = False
    differentBurnRate: bool = False


class PointsValueConfig(CommonValueOptions):
    """Points program configuration."""
    valueType: Literal["points"] = "points"
    pointValue: float = Field(default=0.01, description="Monetary value of one point")
    currency: str = "USD"
    expiry: str = "never"
    minRedemption: float = 100
    maxBalance: Optional[float] = None


class CashbackValueConfig(CommonValueOptions):
    """Cashback wallet configuration."""
    valueType: Literal["cashback"] = "cashback"
    cashbackPercentage: float = Field(default=1.0, description="Percent of spend returned")
    cashbackCap: Optional[float] = None


class CreditsValueConfig(CommonValueOptions):
    """Store credit configuration (wallet based, partial redemption)."""
    valueType: Literal["credits"] = "credits"
    creditMinRedemption: float = 5
    creditMaxBalance: Optional[float] = None
    creditExpiry: str = "12_months"
    allowPartialRedemption: bool = True


class VouchersValueConfig(CommonValueOptions):
    """Voucher configuration (one-time use, fixed denominations)."""
    valueType: Literal["vouchers"] = "vouchers"
    voucherDenominations: List[float] = Field(default_factory=lambda: [5, 10, 25])
    voucherExpiry: str = "90_days"
    voucherStackable: bool = False


class DualEarningConfig(ConfigModel):
    """Earn two value types on the same spend."""
    primaryType: ValueType = ValueType.POINTS
    primaryRate: float = 1
    secondaryType: ValueType = ValueType.CASHBACK
    secondaryRate: float = 1

    @field_validator('primaryType', 'secondaryType')
    @classmethod
    def _not_hybrid(cls, value: ValueType) -> ValueType:
        if value == ValueType.HYBRID:
            raise ValueError("hybrid cannot be combined with itself")
        return value


class ConversionConfig(ConfigModel):
    """Convert ``fromAmount`` of one value type into ``toAmount`` of another."""
    fromType: ValueType = ValueType.POINTS
    fromAmount: float = 100
    toType: ValueType = ValueType.CASHBACK
    toAmount: float = 1
    autoConvert: bool = False

    @field_validator('fromType', 'toType')
    @classmethod
    def _not_hybrid(cls, value: ValueType) -> ValueType:
        if value == ValueType.HYBRID:
            raise ValueError("hybrid cannot be converted")
        return value


# Blocks each hybrid strategy requires; any other block must be absent
HYBRID_STRATEGY_BLOCKS: Dict[HybridStrategy, frozenset] = {
    HybridStrategy.DUAL: frozenset({"dualEarning"}),
    HybridStrategy.CONVERSION: frozenset({"conversion"}),
    HybridStrategy.BOTH: frozenset({"dualEarning", "conversion"}),
}


class HybridValueConfig(CommonValueOptions):
    """
    Hybrid program configuration.

    - dual: ``dualEarning`` set, ``conversion`` None
    - conversion: ``conversion`` set, ``dualEarning`` None
    - both: both blocks set
    """
    valueType: Literal["hybrid"] = "hybrid"
    hybridStrategy: HybridStrategy = HybridStrategy.DUAL
    dualEarning: Optional[DualEarningConfig] = None
    conversion: Optional[ConversionConfig] = None

    @model_validator(mode='after')
    def _check_strategy_blocks(self) -> 'HybridValueConfig':
        required = HYBRID_STRATEGY_BLOCKS[self.hybridStrategy]
        for block in ("dualEarning", "conversion"):
            present = getattr(self, block) is not None
            if block in required and not present:
                raise ValueError(f"{block} is required for hybrid strategy '{self.hybridStrategy.value}'")
            if block not in required and present:
                raise ValueError(f"{block} is not used by hybrid strategy '{self.hybridStrategy.value}'")
        return self


ValueConfig = Annotated[
    Union[
        PointsValueConfig,
        CashbackValueConfig,
        CreditsValueConfig,
        VouchersValueConfig,
        HybridValueConfig,
    ],
    Field(discriminator='valueType'),
]


class ValueProgram(ConfigModel):
    """
    Top-level value program aggregate.

    ``useTiers`` selects which earning rules are authoritative: the tiers'
    own rules when true, ``programEarningRules`` otherwise. The inactive side
    is retained so the selector can be flipped back without data loss.
    """
    valueType: ValueType = ValueType.POINTS
    valueConfig: ValueConfig = Field(default_factory=PointsValueConfig)
    useTiers: bool = False
    tiers: List[Tier] = Field(default_factory=list)
    programEarningRules: EarningRules = Field(default_factory=EarningRules)

    @model_validator(mode='after')
    def _check_variant(self) -> 'ValueProgram':
        if self.valueConfig.valueType != self.valueType.value:
            raise ValueError(
                f"valueConfig is shaped for '{self.valueConfig.valueType}' "
                f"but valueType is '{self.valueType.value}'"
            )
        return self


# =============================================================================
# Signal Template & Queue Models
# =============================================================================


class SignalTemplate(ConfigModel):
    """
    Declarative alert/detection rule attached to a queue.

    ``thresholdMax`` is present exactly when ``condition`` is between and
    ``customPeriodDays`` exactly when ``period`` is custom.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "signal_8b0e5d1c2f3a4e6b9c7d0a1b2c3d4e5f",
                "name": "Revenue drop",
                "description": "Weekly revenue falls more than 10%",
                "enabled": True,
                "metric": "revenue",
                "operator": "percentage_change",
                "period": "7d",
                "condition": "less_than",
                "threshold": -10,
                "unit": "percentage",
                "priority": "high",
                "actions": ["Send email alert"],
                "cooldownHours": 24,
            }
        }
    )

    id: str = Field(..., min_length=1, description="Immutable signal identifier")
    name: str = Field(..., min_length=1)
    description: str = ""
    enabled: bool = True
    metric: SignalMetric
    operator: SignalOperator
    period: SignalPeriod
    customPeriodDays: Optional[int] = None
    condition: SignalCondition
    threshold: float
    thresholdMax: Optional[float] = None
    unit: SignalUnit
    priority: SignalPriority
    actions: List[str] = Field(..., min_length=1)
    cooldownHours: float = 24

    @field_validator('actions')
    @classmethod
    def _dedupe_actions(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @model_validator(mode='after')
    def _check_gated_fields(self) -> 'SignalTemplate':
        is_between = self.condition == SignalCondition.BETWEEN
        if is_between != (self.thresholdMax is not None):
            raise ValueError("thresholdMax must be set if and only if condition is 'between'")
        is_custom = self.period == SignalPeriod.CUSTOM
        if is_custom != (self.customPeriodDays is not None):
            raise ValueError("customPeriodDays must be set if and only if period is 'custom'")
        return self


class SignalDraft(ConfigModel):
    """
    In-progress signal template held by the builder.

    Every field is optional; gated fields may be kept even when their gate is
    off so that switching a condition back and forth does not lose input.
    """
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    metric: Optional[SignalMetric] = None
    operator: Optional[SignalOperator] = None
    period: Optional[SignalPeriod] = None
    customPeriodDays: Optional[int] = None
    condition: Optional[SignalCondition] = None
    threshold: Optional[float] = None
    thresholdMax: Optional[float] = None
    unit: Optional[SignalUnit] = None
    priority: Optional[SignalPriority] = None
    actions: Optional[List[str]] = None
    cooldownHours: Optional[float] = None


class Queue(ConfigModel):
    """Named collection of signal templates, in insertion order."""
    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    enabled: bool = True
    signals: List[SignalTemplate] = Field(default_factory=list)

    @model_validator(mode='after')
    def _check_unique_signal_ids(self) -> 'Queue':
        ids = [signal.id for signal in self.signals]
        if len(ids) != len(set(ids)):
            raise ValueError(f"queue '{self.id}' contains duplicate signal ids")
        return self


# =============================================================================
# Organization Models
# =============================================================================


class HierarchyLevel(ConfigModel):
    """One level of the organization or customer hierarchy."""
    id: str = Field(..., min_length=1)
    name: str
    displayName: str
    description: str = ""
    enabled: bool = True
    required: bool = False


# =============================================================================
# Aggregate State
# =============================================================================


class OnboardingState(ConfigModel):
    """
    Everything the wizard has configured so far.

    ``kpiCounts`` is derived from ``entityAttributes`` and is recomputed by
    the store after every catalog change.
    """
    organizationHierarchy: List[HierarchyLevel] = Field(default_factory=list)
    customerHierarchy: List[HierarchyLevel] = Field(default_factory=list)
    entityAttributes: AttributeCatalog
    kpiCounts: KPICounters
    valueProgram: ValueProgram = Field(default_factory=ValueProgram)
    queues: List[Queue] = Field(default_factory=list)


class StateDocument(ConfigModel):
    """
    Versioned export of the rule configuration.

    Variant records keep their discriminators (``valueType``, ``rewardType``)
    so a document can be loaded back without guessing shapes.
    """
    schemaVersion: int
    valueProgram: ValueProgram
    queues: List[Queue] = Field(default_factory=list)

    @model_validator(mode='after')
    def _check_unique_queue_ids(self) -> 'StateDocument':
        ids = [queue.id for queue in self.queues]
        if len(ids) != len(set(ids)):
            raise ValueError("document contains duplicate queue ids")
        return self


# =============================================================================
# API Request Bodies
# =============================================================================


class TierCreate(BaseModel):
    """Request body for POST /program/tiers."""
    name: str = Field(..., description="Tier name")
    threshold: float = Field(..., description="Qualifying threshold")
    color: TierColor = Field(..., description="Badge color")
    benefits: List[str] = Field(default_factory=list)
    description: str = ""


class QueueCreate(BaseModel):
    """Request body for POST /queues."""
    name: str = Field(..., min_length=1)
    description: str = ""
    enabled: bool = True


class ValueTypeSelection(BaseModel):
    """Request body for PUT /program/value-type."""
    valueType: ValueType


class UseTiersSelection(BaseModel):
    """Request body for PUT /program/use-tiers."""
    useTiers: bool


class EntitySelection(BaseModel):
    """Request body for PUT /organization/entity."""
    entity: str = Field(..., min_length=1)


class AttributeToggle(BaseModel):
    """Request body for PUT /organization/attributes/{name}."""
    enabled: bool


class CustomAttributeCreate(BaseModel):
    """Request body for POST /organization/attributes."""
    name: str = Field(..., min_length=1)
    dataType: str = "text"


class HierarchyLevelCreate(BaseModel):
    """Request body for POST /organization/hierarchy and /customer-types."""
    name: str = Field(..., min_length=1)
    description: str = ""


class HierarchyMove(BaseModel):
    """Request body for POST /organization/hierarchy/{id}/move."""
    direction: HierarchyDirection


class ValidationReport(BaseModel):
    """Result of finalize-time validation of the value program."""
    valid: bool
    errors: List[Dict[str, Any]] = Field(default_factory=list)
