"""Profile completion scoring used to gate job applications.

The score is the share of satisfied categories, each worth a fixed weight;
sub-fields inside a category do not contribute partial credit.
"""
from jobboard.config import settings
from jobboard.models.user import User, UserProfile
from jobboard.schemas.profile import CompletionSection, ProfileCompletion
from jobboard.utils.jsonfields import load_str_list

MIN_BIO_LENGTH = 50
MIN_SKILLS = 3

# (name, label, weight, recommendation)
COMPLETION_SECTIONS = (
    ("contact", "Contact details", 20, "add your first name, last name, email and phone number"),
    ("bio", "Bio", 20, f"write a bio of at least {MIN_BIO_LENGTH} characters"),
    ("skills", "Skills", 20, f"list at least {MIN_SKILLS} skills"),
    ("links", "Social or portfolio link", 20, "add a LinkedIn, GitHub, portfolio or website link"),
    ("experience", "Experience", 20, "add your years of experience and current position"),
)


def _filled(value) -> bool:
    return bool(value and str(value).strip())


def _section_checks(user: User, profile: UserProfile | None) -> dict[str, bool]:
    if profile is None:
        return {name: False for name, *_ in COMPLETION_SECTIONS}
    return {
        "contact": all(_filled(v) for v in (user.first_name, user.last_name, user.email, user.phone)),
        "bio": len((profile.bio or "").strip()) >= MIN_BIO_LENGTH,
        "skills": len(load_str_list(profile.skills)) >= MIN_SKILLS,
        "links": any(
            _filled(v)
            for v in (profile.linkedin_url, profile.github_url, profile.portfolio_url, profile.website_url)
        ),
        "experience": (profile.years_of_experience or 0) > 0 and _filled(profile.current_position),
    }


def meets_completion_threshold(completion: float, required: float | None = None) -> bool:
    threshold = settings.min_profile_completion if required is None else required
    return completion >= threshold


def compute_profile_completion(
    user: User, profile: UserProfile | None, required: float | None = None
) -> ProfileCompletion:
    threshold = settings.min_profile_completion if required is None else required
    checks = _section_checks(user, profile)

    sections = []
    recommendations = []
    earned = 0
    total = 0
    for name, label, weight, recommendation in COMPLETION_SECTIONS:
        done = checks[name]
        sections.append(CompletionSection(name=name, label=label, weight=weight, completed=done))
        total += weight
        if done:
            earned += weight
        else:
            recommendations.append(recommendation)

    completion = round(earned / total * 100, 1) if total else 0.0
    return ProfileCompletion(
        completion=completion,
        required=threshold,
        meets_threshold=meets_completion_threshold(completion, threshold),
        completed_sections=sections,
        missing_sections=[s.name for s in sections if not s.completed],
        recommendations=recommendations,
    )
