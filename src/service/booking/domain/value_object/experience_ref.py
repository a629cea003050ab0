from uuid import UUID

import attrs


@attrs.frozen
class ExperienceRef:
    """The attributes of an experience that discount restrictions are matched against."""

    id: UUID
    resort_id: UUID
    category_slug: str | None = None
