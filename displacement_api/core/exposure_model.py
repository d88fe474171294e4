"""Industry AI exposure model and the methodology document built from it.

Rates are the probability that a layoff in the sector was AI-influenced,
drawn from the lower end of published research:
- IMF (2024): 40% overall AI exposure, ~25% of that at high displacement risk
- Challenger Gray & Christmas: 4-8% of layoffs explicitly cite AI
- McKinsey: higher exposure in knowledge work
- O*NET occupational automation probability data
"""

from displacement_api.domain.constants import (
    DATA_SOURCE_NAME,
    MODEL_NAME,
    NOWCAST_EPOCH,
)
from displacement_api.domain.entities import ExposureRate, TrackedSeries
from displacement_api.domain.services.nowcast import RESIDUAL_KEY

# Category key for the all-industry total
TOTAL_CATEGORY = "total"

# FRED JOLTS layoffs and discharges series
TRACKED_SERIES: tuple[TrackedSeries, ...] = (
    TrackedSeries(TOTAL_CATEGORY, "JTSLDL", "Total Nonfarm"),
    TrackedSeries("information", "JTU5100LDL", "Information (Tech, Media)"),
    TrackedSeries("professional", "JTU540099LDL", "Professional & Business Services"),
    TrackedSeries("manufacturing", "JTU3000LDL", "Manufacturing"),
    TrackedSeries("finance", "JTU5200LDL", "Finance & Insurance"),
    TrackedSeries("retail", "JTU4400LDL", "Retail Trade"),
)

EXPOSURE_MODEL: dict[str, ExposureRate] = {
    # High AI exposure
    "information": ExposureRate(
        0.12, 0.18, 0.25, "Tech sector directly impacted by AI tools replacing coding, content, support"
    ),
    "professional": ExposureRate(
        0.08, 0.12, 0.18, "AI automation of legal research, accounting, consulting analysis"
    ),
    "finance": ExposureRate(
        0.10, 0.15, 0.20, "Algorithmic trading, automated underwriting, AI customer service"
    ),
    # Moderate AI exposure
    "manufacturing": ExposureRate(
        0.05, 0.08, 0.12, "Industrial automation, robotics (ongoing trend, not new AI)"
    ),
    "retail": ExposureRate(
        0.04, 0.06, 0.10, "Self-checkout, inventory AI, but many roles still require humans"
    ),
    # Everything not tracked above
    RESIDUAL_KEY: ExposureRate(
        0.03, 0.05, 0.08, "Healthcare, education, government - slower AI adoption"
    ),
}

RESEARCH_BASIS = [
    {
        "source": 'IMF "Gen-AI and the Future of Work" (2024)',
        "finding": "40% of global employment exposed to AI; ~25% of exposed jobs at high displacement risk",
        "implication": "Overall AI displacement rate ~10% of layoffs in exposed sectors",
    },
    {
        "source": "Challenger Gray & Christmas (2024)",
        "finding": "4-8% of announced layoffs explicitly cite AI as reason",
        "implication": "Conservative baseline for direct AI attribution",
    },
    {
        "source": "McKinsey Global Institute (2023)",
        "finding": "12% of current work activities could be automated by generative AI",
        "implication": "Upper bound on AI-automatable work",
    },
    {
        "source": "Goldman Sachs (2023)",
        "finding": "25% of current work tasks could be automated",
        "implication": "Affects knowledge workers disproportionately",
    },
]

LIMITATIONS = [
    "AI causation is probabilistic, not directly measured",
    "Does not capture indirect effects (companies failing due to AI competition)",
    "Does not capture job quality degradation (hours cut vs full layoffs)",
    "Voluntary quits due to AI not captured in layoff data",
    "International job displacement not included",
]


def sector_categories(model: dict[str, ExposureRate] | None = None) -> list[str]:
    """Tracked sectors that carry their own exposure rate."""
    model = model or EXPOSURE_MODEL
    return [s.category for s in TRACKED_SERIES if s.category in model]


def exposure_table(model: dict[str, ExposureRate] | None = None) -> dict[str, dict]:
    """Exposure model as plain dicts."""
    model = model or EXPOSURE_MODEL
    return {
        sector: {"low": r.low, "mid": r.mid, "high": r.high, "rationale": r.rationale}
        for sector, r in model.items()
    }


def build_methodology(
    model: dict[str, ExposureRate] | None = None,
    series: tuple[TrackedSeries, ...] = TRACKED_SERIES,
) -> dict:
    """Build the methodology document from the exposure model.

    The worked example uses the first tracked sector's mid rate, so the
    document never drifts from the rates actually applied.
    """
    model = model or EXPOSURE_MODEL
    example_sector = next(s for s in series if s.category in model and s.category != RESIDUAL_KEY)
    example_rate = model[example_sector.category].mid
    example_layoffs = 50_000

    return {
        "title": "AI Job Displacement Estimation Methodology",
        "version": "2.0",
        "overview": (
            "This counter provides a research-based estimate of jobs displaced by AI "
            f"in the United States since {NOWCAST_EPOCH:%B %Y}."
        ),
        "data_source": {
            "name": "Bureau of Labor Statistics JOLTS",
            "description": "Job Openings and Labor Turnover Survey",
            "metric": "Monthly layoffs and discharges by industry",
            "via": "FRED (Federal Reserve Economic Data)",
            "series": {s.category: s.series_id for s in series},
            "lag": "~2 months (standard BLS release schedule)",
            "quality": "Gold standard - official US government statistics",
        },
        "ai_attribution_model": {
            "approach": MODEL_NAME,
            "description": "We apply research-based AI exposure rates to industry-specific layoff data",
            "research_basis": RESEARCH_BASIS,
            "industry_rates": exposure_table(model),
        },
        "calculation": {
            "formula": "AI Displaced = sum(Industry Layoffs x Industry AI Exposure Rate)",
            "residual": f"Layoffs outside tracked industries use the '{RESIDUAL_KEY}' rate",
            "example": (
                f"{example_sector.label}: {example_layoffs:,} layoffs x {example_rate:.0%} AI rate "
                f"= {round(example_layoffs * example_rate):,} AI-attributed"
            ),
            "range_provided": "We show low/mid/high estimates to reflect uncertainty",
            "start_date": NOWCAST_EPOCH.isoformat(),
        },
        "source": DATA_SOURCE_NAME,
        "limitations": LIMITATIONS,
        "methodology_note": (
            "We use CONSERVATIVE (low-end) estimates from research to avoid overstating AI impact. "
            "The counter shows a midpoint estimate with range available via API."
        ),
    }
