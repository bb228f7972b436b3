"""
Lookup data for the text heuristics: place names, the location blacklist,
section header vocabularies and education keywords.

Components take a Lexicon argument instead of reading module globals, so tests
can swap in a reduced vocabulary.
"""

import re
from dataclasses import dataclass
from functools import cached_property, lru_cache
from typing import Dict, FrozenSet, List, Pattern, Tuple

from resume_ingest.core.schemas import SectionKind


COUNTRIES = (
    "India", "United States", "USA", "United Kingdom", "UK", "Canada", "Australia",
    "Germany", "France", "Netherlands", "Ireland", "Singapore", "Japan", "China",
    "Brazil", "Mexico", "Spain", "Italy", "Sweden", "Norway", "Denmark", "Finland",
    "Switzerland", "Austria", "Belgium", "Poland", "Portugal", "Israel", "UAE",
    "United Arab Emirates", "Saudi Arabia", "Qatar", "South Africa", "Nigeria",
    "Kenya", "Egypt", "Pakistan", "Bangladesh", "Sri Lanka", "Nepal", "Indonesia",
    "Malaysia", "Philippines", "Vietnam", "Thailand", "South Korea", "New Zealand",
    "Argentina", "Chile", "Colombia", "Peru", "Romania", "Ukraine", "Czech Republic",
    "Greece", "Turkey",
)

CITIES = (
    # India
    "Hyderabad", "Bangalore", "Bengaluru", "Mumbai", "Delhi", "New Delhi", "Chennai",
    "Pune", "Kolkata", "Ahmedabad", "Noida", "Gurgaon", "Gurugram", "Jaipur",
    "Kochi", "Coimbatore", "Chandigarh", "Indore", "Lucknow", "Visakhapatnam",
    "Warangal", "Nagpur", "Bhubaneswar", "Thiruvananthapuram", "Mysore",
    # North America
    "New York", "San Francisco", "Los Angeles", "Seattle", "Austin", "Boston",
    "Chicago", "Denver", "Atlanta", "Dallas", "Houston", "Miami", "Phoenix",
    "Portland", "San Diego", "San Jose", "Philadelphia", "Washington", "Toronto",
    "Vancouver", "Montreal", "Ottawa", "Calgary",
    # Elsewhere
    "London", "Manchester", "Edinburgh", "Dublin", "Berlin", "Munich", "Hamburg",
    "Paris", "Amsterdam", "Zurich", "Stockholm", "Copenhagen", "Madrid", "Barcelona",
    "Lisbon", "Warsaw", "Sydney", "Melbourne", "Auckland", "Tokyo", "Seoul",
    "Beijing", "Shanghai", "Dubai", "Abu Dhabi", "Riyadh", "Doha", "Tel Aviv",
    "Cairo", "Lagos", "Nairobi", "Johannesburg", "Cape Town", "Karachi", "Lahore",
    "Dhaka", "Colombo", "Kathmandu", "Jakarta", "Kuala Lumpur", "Manila",
    "Bangkok", "Sao Paulo", "Mexico City", "Buenos Aires",
)

REGIONS = (
    # US states
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado", "Connecticut",
    "Delaware", "Florida", "Georgia", "Hawaii", "Idaho", "Illinois", "Indiana", "Iowa",
    "Kansas", "Kentucky", "Louisiana", "Maine", "Maryland", "Massachusetts", "Michigan",
    "Minnesota", "Mississippi", "Missouri", "Montana", "Nebraska", "Nevada",
    "New Hampshire", "New Jersey", "New Mexico", "North Carolina", "North Dakota",
    "Ohio", "Oklahoma", "Oregon", "Pennsylvania", "Rhode Island", "South Carolina",
    "South Dakota", "Tennessee", "Texas", "Utah", "Vermont", "Virginia",
    "West Virginia", "Wisconsin", "Wyoming",
    # Indian states
    "Telangana", "Andhra Pradesh", "Karnataka", "Tamil Nadu", "Kerala", "Maharashtra",
    "Gujarat", "Rajasthan", "Punjab", "Haryana", "Uttar Pradesh", "West Bengal",
    "Odisha", "Bihar", "Madhya Pradesh",
    # Canadian provinces
    "Ontario", "Quebec", "British Columbia", "Alberta",
)

US_STATE_CODES = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID", "IL", "IN",
    "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV",
    "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN",
    "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY", "DC",
)

MONTHS = (
    "January", "February", "March", "April", "May", "June", "July", "August",
    "September", "October", "November", "December",
    "Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sep", "Sept", "Oct", "Nov", "Dec",
)

LANGUAGES = (
    "English", "Hindi", "Telugu", "Tamil", "Kannada", "Malayalam", "Marathi", "Bengali",
    "Gujarati", "Punjabi", "Urdu", "Spanish", "French", "German", "Italian",
    "Portuguese", "Mandarin", "Chinese", "Japanese", "Korean", "Arabic", "Russian",
    "Dutch",
)

JOB_TITLE_WORDS = (
    "Analyst", "Engineer", "Developer", "Manager", "Lead", "Intern", "Consultant",
    "Designer", "Architect", "Trainer", "Annotator", "Director", "Specialist",
    "Administrator", "Associate", "Coordinator", "Officer", "Executive", "Scientist",
    "Programmer", "Tester", "Technician", "Assistant", "Head", "President",
    "Founder", "Freelancer", "Freelancing", "Student", "Teacher", "Instructor",
)

SOCIAL_AND_EMAIL_DOMAINS = (
    "linkedin.com", "github.com", "gitlab.com", "twitter.com", "x.com", "facebook.com",
    "instagram.com", "youtube.com", "medium.com", "gmail.com", "yahoo.com",
    "outlook.com", "hotmail.com", "live.com", "icloud.com", "aol.com",
    "protonmail.com", "proton.me",
)

# Order matters: the first vocabulary whose pattern matches a header line wins.
SECTION_HEADERS: Tuple[Tuple[SectionKind, Tuple[str, ...]], ...] = (
    (SectionKind.SUMMARY, (
        "summary", "professional summary", "career summary", "executive summary",
        "profile", "professional profile", "profile summary", "objective",
        "career objective", "about me", "about", "overview",
    )),
    (SectionKind.EXPERIENCE, (
        "experience", "work experience", "professional experience", "relevant experience",
        "employment", "employment history", "work history", "career history",
        "internships", "internship", "internship experience", "career experience",
    )),
    (SectionKind.EDUCATION, (
        "education", "academic background", "academics", "academic qualifications",
        "educational qualifications", "education and training", "education & training",
        "qualifications",
    )),
    (SectionKind.SKILLS, (
        "skills", "technical skills", "key skills", "core skills", "skill set", "skillset",
        "core competencies", "competencies", "technologies", "tech stack",
        "areas of expertise", "expertise", "technical proficiencies", "tools",
    )),
    (SectionKind.CERTIFICATIONS, (
        "certifications", "certification", "certificates", "licenses",
        "licenses and certifications", "licenses & certifications", "courses",
        "training", "trainings",
    )),
    (SectionKind.PROJECTS, (
        "projects", "personal projects", "academic projects", "key projects",
        "selected projects", "portfolio",
    )),
    # Sections we do not model: switch back to the unclassified bucket.
    (SectionKind.OTHER, (
        "awards", "achievements", "awards and achievements", "honors", "honors and awards",
        "publications", "languages", "interests", "hobbies", "references",
        "volunteer", "volunteering", "volunteer experience", "activities",
        "extracurricular activities", "additional information", "personal details",
        "declaration",
    )),
)

DEGREE_PATTERNS = (
    r"bachelor", r"master", r"associate(?:'s)? (?:of|degree)", r"doctor(?:ate)?",
    r"ph\.?\s?d", r"diploma", r"b\.?\s?tech", r"m\.?\s?tech", r"b\.?\s?e\.", r"m\.?\s?e\.",
    r"b\.?\s?sc", r"m\.?\s?sc", r"b\.?\s?com", r"m\.?\s?com", r"b\.?\s?c\.?\s?a", r"m\.?\s?c\.?\s?a",
    r"b\.?\s?b\.?\s?a", r"m\.?\s?b\.?\s?a", r"b\.s\.", r"m\.s\.", r"b\.a\.", r"m\.a\.",
    r"high school", r"higher secondary", r"secondary school", r"intermediate",
    r"ssc", r"hsc", r"12th", r"10th", r"degree",
)

INSTITUTION_PATTERNS = (
    r"university", r"college", r"institute", r"institution", r"school", r"academy",
    r"polytechnic", r"iit", r"nit", r"iiit", r"vidyalaya", r"bootcamp",
)

NAME_STOP_WORDS = (
    "resume", "curriculum vitae", "cv", "contact", "contact information", "page",
)


def _word_alternation(words) -> str:
    # Longest first so "New Delhi" wins over "Delhi".
    ordered = sorted(set(words), key=len, reverse=True)
    return "|".join(re.escape(w).replace(r"\ ", r"\s+") for w in ordered)


@dataclass(frozen=True)
class Lexicon:
    countries: Tuple[str, ...] = COUNTRIES
    cities: Tuple[str, ...] = CITIES
    regions: Tuple[str, ...] = REGIONS
    state_codes: Tuple[str, ...] = US_STATE_CODES
    months: Tuple[str, ...] = MONTHS
    languages: Tuple[str, ...] = LANGUAGES
    job_title_words: Tuple[str, ...] = JOB_TITLE_WORDS
    excluded_link_domains: Tuple[str, ...] = SOCIAL_AND_EMAIL_DOMAINS
    section_headers: Tuple[Tuple[SectionKind, Tuple[str, ...]], ...] = SECTION_HEADERS
    degree_patterns: Tuple[str, ...] = DEGREE_PATTERNS
    institution_patterns: Tuple[str, ...] = INSTITUTION_PATTERNS
    name_stop_words: Tuple[str, ...] = NAME_STOP_WORDS
    max_header_length: int = 40

    @property
    def place_names(self) -> Tuple[str, ...]:
        return self.countries + self.cities + self.regions

    @cached_property
    def place_re(self) -> Pattern[str]:
        return re.compile(rf"\b(?:{_word_alternation(self.place_names)})\b", re.IGNORECASE)

    @cached_property
    def city_state_code_re(self) -> Pattern[str]:
        # "Austin, TX" style; the state code must be upper case.
        return re.compile(rf"\b[A-Z][a-zA-Z .'-]+,\s*(?:{'|'.join(self.state_codes)})\b")

    @cached_property
    def location_blacklist_re(self) -> Pattern[str]:
        words = self.months + self.languages + self.job_title_words
        return re.compile(rf"\b(?:{_word_alternation(words)})\b", re.IGNORECASE)

    @cached_property
    def job_title_re(self) -> Pattern[str]:
        return re.compile(rf"\b(?:{_word_alternation(self.job_title_words)})s?\b", re.IGNORECASE)

    @cached_property
    def spaced_place_patterns(self) -> List[Tuple[str, Pattern[str]]]:
        """One pattern per place name tolerating whitespace between every letter."""
        out = []
        for name in sorted(set(self.place_names), key=len, reverse=True):
            letters = [c for c in name if not c.isspace()]
            if len(letters) < 4:
                continue
            body = r"\s*".join(re.escape(c) for c in letters)
            out.append((name, re.compile(rf"(?<![A-Za-z]){body}(?![a-z])", re.IGNORECASE)))
        return out

    @cached_property
    def header_vocabulary(self) -> Dict[str, SectionKind]:
        vocab: Dict[str, SectionKind] = {}
        for kind, words in self.section_headers:
            for w in words:
                vocab.setdefault(w, kind)
        return vocab

    @cached_property
    def header_patterns(self) -> List[Tuple[SectionKind, Pattern[str], Pattern[str]]]:
        """(kind, whole-line header pattern, inline "Header: content" pattern) in priority order."""
        out = []
        for kind, words in self.section_headers:
            alts = _word_alternation(words)
            whole = re.compile(rf"^\s*(?:{alts})\s*:?\s*$", re.IGNORECASE)
            inline = re.compile(rf"^\s*(?:{alts})\s*:\s*(?P<rest>\S.*)$", re.IGNORECASE)
            out.append((kind, whole, inline))
        return out

    @cached_property
    def degree_re(self) -> Pattern[str]:
        return re.compile(rf"(?<![A-Za-z])(?:{'|'.join(self.degree_patterns)})(?![a-z])", re.IGNORECASE)

    @cached_property
    def institution_re(self) -> Pattern[str]:
        return re.compile(rf"\b(?:{'|'.join(self.institution_patterns)})\b", re.IGNORECASE)

    @cached_property
    def name_stop_words_set(self) -> FrozenSet[str]:
        return frozenset(w.lower() for w in self.name_stop_words) | frozenset(self.header_vocabulary)

    def is_excluded_domain(self, host: str) -> bool:
        host = host.lower()
        if host.startswith("www."):
            host = host[4:]
        return any(host == d or host.endswith("." + d) for d in self.excluded_link_domains)


@lru_cache()
def default_lexicon() -> Lexicon:
    return Lexicon()
