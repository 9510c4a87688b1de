from typing import List, NotRequired, TypedDict, Union


class PersonalInfo(TypedDict):
    fullName: str
    email: NotRequired[str]
    phone: NotRequired[str]
    location: NotRequired[str]
    title: NotRequired[str]


class StructuredItem(TypedDict, total=False):
    title: str
    organization: str
    period: str
    description: str
    items: List[str]
    skills: List[str]


class CVSection(TypedDict):
    title: str
    content: Union[str, List[Union[str, StructuredItem]]]


class CVData(TypedDict):
    """
    Shape of the `generate_cv` tool arguments.
    Kept as plain dicts: the tool schema guarantees fullName, nothing else
    is validated locally.
    """
    personalInfo: PersonalInfo
    sections: List[CVSection]
