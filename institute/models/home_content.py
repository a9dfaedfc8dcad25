from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_HERO_IMAGE = (
    "https://images.unsplash.com/photo-1551434678-e076c223a692"
    "?auto=format&fit=crop&w=2850&q=80"
)


@dataclass(frozen=True, slots=True)
class Feature:
    title: str
    description: str


@dataclass(frozen=True, slots=True)
class HomeContent:
    """Landing page hero: headline, subtitle, feature list, background.

    ``hero_image`` is the stored reference (absolute URL or storage key);
    ``hero_image_url`` is the resolved display URL, filled on read.
    """

    hero_title: str
    hero_subtitle: str
    features: tuple[Feature, ...] = ()
    hero_image: str = DEFAULT_HERO_IMAGE
    hero_image_url: str | None = None

    def to_value(self) -> dict:
        """Shape of the ``site_settings.value`` JSON document."""
        return {
            "heroTitle": self.hero_title,
            "heroSubtitle": self.hero_subtitle,
            "features": [
                {"title": f.title, "description": f.description} for f in self.features
            ],
            "heroImage": self.hero_image,
        }

    @staticmethod
    def from_value(value: dict) -> HomeContent:
        return HomeContent(
            hero_title=value.get("heroTitle") or DEFAULT_HOME_CONTENT.hero_title,
            hero_subtitle=value.get("heroSubtitle")
            or DEFAULT_HOME_CONTENT.hero_subtitle,
            features=tuple(
                Feature(title=f.get("title", ""), description=f.get("description", ""))
                for f in value.get("features") or []
            ),
            hero_image=value.get("heroImage") or DEFAULT_HERO_IMAGE,
        )

    def with_text_of(self, other: HomeContent) -> HomeContent:
        """Take headline, subtitle and features from *other*, keep the image."""
        return replace(
            self,
            hero_title=other.hero_title,
            hero_subtitle=other.hero_subtitle,
            features=other.features,
        )


DEFAULT_HOME_CONTENT = HomeContent(
    hero_title="Master the Data Future",
    hero_subtitle=(
        "Deepmetrics Analytics Institute provides world-class education in "
        "Data Science, AI, and Business Intelligence. Transform your career today."
    ),
    features=(
        Feature(
            title="AI-Driven Learning",
            description=(
                "Personalized curriculum recommendations powered by advanced AI "
                "to match your career path."
            ),
        ),
        Feature(
            title="Expert Instructors",
            description=(
                "Learn from industry veterans from top tech companies and "
                "research institutions."
            ),
        ),
        Feature(
            title="Hands-on Projects",
            description=(
                "Build a portfolio with real-world datasets and capstone "
                "projects to showcase to employers."
            ),
        ),
    ),
)
