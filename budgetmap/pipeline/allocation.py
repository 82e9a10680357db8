"""Budget reallocation simulator over the fixed spending category catalog."""

from __future__ import annotations

from budgetmap.common.errors import UnknownCategoryError
from budgetmap.common.models import AllocationCategory, AllocationSubmission, MunicipalityRecord

DEFAULT_CATEGORIES: tuple[AllocationCategory, ...] = (
    AllocationCategory(
        id="health-env",
        name="สาธารณะสุขและสิ่งแวดล้อม",
        description="การดูแลสุขภาพประชาชน การจัดการขยะ และการรักษาสิ่งแวดล้อม",
        percentage=25,
        color="#4DB6AC",
    ),
    AllocationCategory(
        id="innovation-edu",
        name="นวัตกรรมและการศึกษา",
        description="การพัฒนาการศึกษา เทคโนโลยี และนวัตกรรมในพื้นที่",
        percentage=15,
        color="#5C48F6",
    ),
    AllocationCategory(
        id="disaster",
        name="สาธารณะภัย",
        description="การป้องกันและจัดการภัยพิบัติ ความปลอดภัยสาธารณะ",
        percentage=10,
        color="#FF5062",
    ),
    AllocationCategory(
        id="infrastructure",
        name="โครงสร้างพื้นฐาน",
        description="การสร้างและบำรุงรักษาถนน ไฟฟ้า และสาธารณูปโภคพื้นฐาน",
        percentage=30,
        color="#FF8A65",
    ),
    AllocationCategory(
        id="water",
        name="บริหารจัดการน้ำ",
        description="การจัดการน้ำประปา การระบายน้ำ และการป้องกันน้ำท่วม",
        percentage=5,
        color="#42A5F5",
    ),
    AllocationCategory(
        id="governance",
        name="การจัดการภายในและธรรมาภิบาล",
        description="การบริหารจัดการภายในองค์กร การให้บริการประชาชน และความโปร่งใส",
        percentage=6,
        color="#9575CD",
    ),
    AllocationCategory(
        id="culture",
        name="สังคม ศาสนา วัฒนธรรม",
        description="กิจกรรมทางสังคม ศาสนา และการส่งเสริมวัฒนธรรมท้องถิ่น",
        percentage=4,
        color="#FFCA28",
    ),
    AllocationCategory(
        id="economy",
        name="เศรษฐกิจและแหล่งท่องเที่ยว",
        description="การส่งเสริมเศรษฐกิจท้องถิ่น การพัฒนาแหล่งท่องเที่ยว",
        percentage=5,
        color="#66BB6A",
    ),
)

FULL_ALLOCATION = 100


class AllocationSimulator:
    """A visitor's in-progress allocation of one municipality's budget.

    Percentages are not clamped and need not sum to 100; a total above 100 is
    the over-allocated state, reported on the submission rather than refused.
    """

    def __init__(
        self,
        municipality: MunicipalityRecord,
        catalog: tuple[AllocationCategory, ...] = DEFAULT_CATEGORIES,
        *,
        total_budget: float | None = None,
    ) -> None:
        self.municipality = municipality
        self._total_budget = municipality.budget if total_budget is None else total_budget
        self.catalog = catalog
        self._order: list[str] = [category.id for category in catalog]
        self._categories: dict[str, AllocationCategory] = {}
        self.total_percentage = 0.0
        self.reset()

    @property
    def total_budget(self) -> float:
        return self._total_budget

    @property
    def categories(self) -> tuple[AllocationCategory, ...]:
        return tuple(self._categories[category_id] for category_id in self._order)

    @property
    def remaining_percentage(self) -> float:
        return FULL_ALLOCATION - self.total_percentage

    def _recompute(self, percentages: dict[str, float]) -> None:
        self._categories = {
            category.id: category.with_percentage(percentages[category.id], self.total_budget)
            for category in self.catalog
        }
        self.total_percentage = sum(percentages.values())

    def reset(self) -> None:
        self._recompute({category.id: category.percentage for category in self.catalog})

    def set_percentage(self, category_id: str, value: float) -> None:
        if category_id not in self._categories:
            raise UnknownCategoryError(f"Unknown allocation category: {category_id}")
        percentages = {cid: category.percentage for cid, category in self._categories.items()}
        percentages[category_id] = value
        self._recompute(percentages)

    def is_over_allocated(self) -> bool:
        return self.total_percentage > FULL_ALLOCATION

    def build_submission(self, ideas: str | None = None) -> AllocationSubmission:
        over_budget = self.is_over_allocated()
        return AllocationSubmission(
            municipality_id=self.municipality.id,
            municipality_name=self.municipality.name,
            total_budget=self.total_budget,
            categories=self.categories,
            over_budget=over_budget,
            over_budget_ideas=ideas if over_budget else None,
        )
