"""
Static keyword and registry tables for Housing Contact Scraper.

All tables are immutable. Components receive them bundled in a
KeywordTables instance so tests can substitute smaller tables.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Pattern, Tuple


# =============================================================================
# Housing & Contact Vocabulary
# =============================================================================

HOUSING_KEYWORDS = (
    'housing', 'residence', 'residential', 'dormitory', 'dorm', 'student housing',
    'off-campus', 'residential life', 'campus life', 'community life', 'living',
    'accommodation', 'help-desk', 'off-campus-housing', 'hdh', 'reslife',
)

ADMIN_TITLES = (
    'director', 'coordinator', 'manager', 'administrator', 'assistant',
    'associate', 'supervisor', 'staff', 'specialist', 'advisor', 'counselor',
    'officer', 'dean', 'associate dean', 'assistant director', 'program coordinator',
)

CONTACT_KEYWORDS = (
    'contact us', 'contact', 'get in touch', 'staff directory', 'directory',
    'administration', 'team', 'staff', 'communities', 'residential communities',
    'housing communities', 'residence halls', 'meet the staff', 'our team',
    'faculty staff', 'leadership', 'management', 'personnel', 'about us',
)

# Extra phrases used when following links out of an already fetched page
LINK_CONTACT_KEYWORDS = (
    'staff directory', 'faculty staff', 'personnel', 'leadership',
    'management', 'administration', 'team members', 'our staff',
)

LOCATION_KEYWORDS = (
    'apartments', 'residence halls', 'residential areas', 'communities',
    'north campus', 'south campus', 'east campus', 'west campus',
    'graduate housing', 'undergraduate housing', 'family housing',
    'off-campus', 'university apartments', 'residential colleges',
    'living areas', 'housing complexes', 'dormitories', 'suites',
    'residential communities', 'housing communities', 'residence life',
)

STAFF_INDICATORS = ('staff', 'team', 'person', 'contact', 'directory')

# =============================================================================
# URL Enumeration
# =============================================================================

STAFF_DIRECTORY_PATTERNS = (
    '/staff-directory/', '/staff-directory', '/about-us/staff-directory/',
    '/about-us/staff', '/staff/', '/staff', '/people/', '/people',
    '/team/', '/team', '/directory/', '/directory', '/administration/',
    '/administration', '/personnel/', '/contact/', '/our-team/',
    '/meet-the-staff/', '/faculty-staff/', '/leadership/', '/management/',
)

HOUSING_PATH_PATTERNS = (
    '/housing/staff-directory/', '/housing/staff/', '/housing/about-us/staff/',
    '/housing/team/', '/housing/contact/', '/housing/administration/',
    '/residential-life/staff/', '/residential-life/staff-directory/',
    '/residential-life/team/', '/residential-life/contact/',
    '/housing/communities/staff/', '/student-life/housing/staff/',
)

LOCATION_PATTERNS = (
    '/communities/', '/apartments/', '/residence-halls/', '/locations/',
    '/housing-areas/', '/residential-areas/', '/graduate-housing/',
    '/undergraduate-housing/', '/family-housing/', '/off-campus/',
    '/north-campus/', '/south-campus/', '/east-campus/', '/west-campus/',
    '/living/', '/dormitories/', '/suites/', '/complexes/',
)

PATH_PREFIXES = ('/housing', '/residential-life')
LOCATION_PATH_PREFIXES = ('/housing', '/residential-life', '/reslife')

HOUSING_SUBDOMAIN_PATTERNS = (
    'housing', 'residential', 'residence', 'dorms', 'hdh', 'reslife',
    'housing-hub', 'student-housing', 'hdhhousing', 'hdhhome', 'studenthousing',
)

# Pages whose URL contains one of these are housing hubs
HUB_PATH_MARKERS = ('/housing', '/residential', '/reslife')

# =============================================================================
# Search Queries
# =============================================================================

SEARCH_QUERY_TEMPLATES = (
    '{name} housing contact',
    '{name} housing staff directory',
    '{name} residential life staff',
    '{name} housing administration',
    '{name} housing communities staff',
    '{name} "staff directory" housing',
    '{name} "meet the staff" housing',
    '{name} housing personnel',
)

SITE_QUERY_TEMPLATES = (
    'site:{domain} housing staff',
    'site:{domain} "staff directory"',
    'site:{domain} housing contact',
    'site:{domain} residential staff',
    'site:{domain} housing administration',
    'site:{domain} housing personnel',
    'site:{domain} housing team',
)

# =============================================================================
# HTML Selectors
# =============================================================================

STAFF_SECTION_SELECTORS = (
    '.staff-grid', '.staff-card', '.staff-list', '.staff-item',
    '.person', '.personnel', '.team-member', '.staff-member',
    '.directory-entry', '.contact-card', '.profile-card',
    '[itemtype*="Person"]', '[class*="staff"]', '[class*="team"]',
    '[class*="person"]', '[class*="contact"]', '[class*="directory"]',
    'table', 'tbody', 'tr',
    '.directory', '.contact-list', '.personnel-list',
    'div', 'section', 'article', 'main',
)

STRUCTURED_DATA_SELECTORS = (
    '[data-person]', '[data-staff]', '[data-contact]',
    '.vcard', '.h-card',
    '[typeof="Person"]',
)

LOCATION_STAFF_SELECTORS = (
    '.location-staff', '.building-staff', '.community-staff',
    '.hall-staff', '.residence-staff', '.apartment-staff',
    '[class*="staff"][class*="location"]',
    '[class*="staff"][class*="building"]',
    '[class*="staff"][class*="community"]',
)

COMMUNITY_NAV_SELECTORS = (
    '.communities-nav', '.locations-nav', '.housing-nav',
    '[class*="communities"]', '[class*="locations"]', '[id*="communities"]',
)

LABELED_ROLES = (
    'building manager', 'hall director', 'community advisor',
    'residence coordinator', 'area coordinator', 'staff contact',
    'housing coordinator', 'resident advisor', 'building coordinator',
)

# =============================================================================
# Validity Predicates
# =============================================================================

NAME_DENY_PATTERNS = (
    r'^\d+$', r'^[A-Z\s]+$', r'equal housing', r'copyright', r'sign.?up',
    r'contact', r'information', r'department', r'university', r'college',
    r'program', r'service', r'office', r'housing', r'residential',
    r'phone', r'email', r'fax', r'address', r'location', r'hours', r'submit',
)

FILE_EXTENSIONS = ('png', 'jpg', 'gif', 'pdf', 'doc', 'zip', 'jpeg', 'svg', 'webp')

AUTOMATED_MAILBOX_MARKERS = (
    'noreply', 'no-reply', 'donotreply', 'do-not-reply', 'mailer-daemon',
    'webmaster', 'postmaster',
)

# =============================================================================
# Location Context
# =============================================================================

LOCATION_CONTEXT_PATTERNS = (
    (r'/off-campus', 'Off-Campus Housing'),
    (r'/graduate', 'Graduate Housing'),
    (r'/undergraduate', 'Undergraduate Housing'),
    (r'/family', 'Family Housing'),
    (r'/north-campus', 'North Campus'),
    (r'/south-campus', 'South Campus'),
    (r'/east-campus', 'East Campus'),
    (r'/west-campus', 'West Campus'),
    (r'/apartments', 'University Apartments'),
    (r'/residence-halls?', 'Residence Halls'),
    (r'/communities', 'Residential Communities'),
    (r'/suites', 'Suites'),
    (r'/towers?', 'Residence Towers'),
)

# =============================================================================
# Institution Names & Domains
# =============================================================================

STOP_WORDS = ('the', 'of', 'at', 'in', 'and', '&')

INSTITUTION_ALIASES = {
    'california institute of technology': ('caltech', 'cit'),
    'caltech': ('california institute of technology', 'cit'),
    'stanford university': ('stanford',),
    'stanford': ('stanford university',),
    'university of southern california': ('usc',),
    'usc': ('university of southern california',),
    'harvey mudd college': ('harvey mudd', 'hmc'),
    'pomona college': ('pomona',),
    'claremont mckenna college': ('claremont mckenna', 'cmc'),
    'scripps college': ('scripps',),
    'pitzer college': ('pitzer',),
    'university of california berkeley': ('uc berkeley', 'ucb', 'berkeley', 'cal'),
    'university of california los angeles': ('ucla', 'uc los angeles'),
    'university of california san diego': ('ucsd', 'uc san diego'),
    'university of california irvine': ('uci', 'uc irvine'),
    'university of california davis': ('ucd', 'uc davis'),
    'university of california santa barbara': ('ucsb', 'uc santa barbara'),
    'university of california riverside': ('ucr', 'uc riverside'),
    'university of california santa cruz': ('ucsc', 'uc santa cruz'),
    'university of california merced': ('ucm', 'uc merced'),
    'university of california san francisco': ('ucsf', 'uc san francisco'),
    'california state university long beach': ('cal state long beach', 'csulb'),
    'california state university los angeles': ('cal state la', 'csula'),
    'california state university fullerton': ('cal state fullerton', 'csuf'),
    'california state university northridge': ('cal state northridge', 'csun'),
    'california state university san diego': ('sdsu', 'san diego state'),
    'san diego state university': ('sdsu', 'cal state san diego'),
    'california state university fresno': ('fresno state', 'csuf'),
    'california state university sacramento': ('sac state', 'csus'),
    'california state university san francisco': ('sf state', 'sfsu'),
    'san francisco state university': ('sf state', 'sfsu'),
    'california polytechnic state university': ('cal poly', 'calpoly'),
    'cal poly': ('california polytechnic state university', 'calpoly'),
    'california polytechnic pomona': ('cal poly pomona', 'cpp'),
    'university of california hastings': ('uc hastings',),
    'loyola marymount university': ('lmu',),
    'pepperdine university': ('pepperdine',),
    'santa clara university': ('santa clara', 'scu'),
    'university of san francisco': ('usf',),
    'san jose state university': ('sjsu', 'san jose state'),
    'humboldt state university': ('humboldt state', 'hsu'),
}

SYSTEM_ABBREVIATIONS = {
    'university of california': ('uc', 'university of california'),
    'california state university': ('csu', 'cal state'),
    'state university': ('state', 'university'),
    'college': ('college', 'university'),
    'institute of technology': ('tech', 'institute of technology', 'it'),
    'community college': ('cc', 'community college'),
}

# Words ignored when matching non-system aliases by keyword
ALIAS_NOISE_WORDS = (
    'university', 'of', 'california', 'state', 'college', 'institute', 'technology',
)

MULTI_CAMPUS_PREFIX = 'university of california'

KNOWN_DOMAINS = {
    'california institute of technology': 'caltech.edu',
    'caltech': 'caltech.edu',
    'stanford university': 'stanford.edu',
    'stanford': 'stanford.edu',
    'university of southern california': 'usc.edu',
    'usc': 'usc.edu',
    'harvey mudd college': 'hmc.edu',
    'harvey mudd': 'hmc.edu',
    'pomona college': 'pomona.edu',
    'pomona': 'pomona.edu',
    'claremont mckenna college': 'cmc.edu',
    'claremont mckenna': 'cmc.edu',
    'scripps college': 'scrippscollege.edu',
    'pitzer college': 'pitzer.edu',
    'california polytechnic state university': 'calpoly.edu',
    'cal poly': 'calpoly.edu',
    'california polytechnic pomona': 'cpp.edu',
    'cal poly pomona': 'cpp.edu',
    'loyola marymount university': 'lmu.edu',
    'pepperdine university': 'pepperdine.edu',
    'santa clara university': 'scu.edu',
    'university of san francisco': 'usfca.edu',
    'san jose state university': 'sjsu.edu',
    'san diego state university': 'sdsu.edu',
    'san francisco state university': 'sfsu.edu',
    'humboldt state university': 'humboldt.edu',
    'university of california santa cruz': 'ucsc.edu',
    'uc santa cruz': 'ucsc.edu',
}

CAMPUS_DOMAINS = {
    'san diego': 'ucsd.edu', 'sandiego': 'ucsd.edu',
    'los angeles': 'ucla.edu', 'losangeles': 'ucla.edu',
    'berkeley': 'berkeley.edu', 'davis': 'ucdavis.edu',
    'irvine': 'uci.edu', 'santa barbara': 'ucsb.edu', 'santabarbara': 'ucsb.edu',
    'santa cruz': 'ucsc.edu', 'santacruz': 'ucsc.edu', 'riverside': 'ucr.edu',
    'merced': 'ucmerced.edu', 'san francisco': 'ucsf.edu', 'sanfrancisco': 'ucsf.edu',
}

# Words dropped before building domains from the name itself
DOMAIN_NOISE_WORDS = (
    'university', 'of', 'the', 'at', 'state', 'college', 'california',
    'institute', 'technology',
)


# =============================================================================
# Table Bundle
# =============================================================================

def _freeze(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class KeywordTables:
    """
    Immutable bundle of every keyword/registry table the engine consults.

    Components take one of these at construction time; DEFAULT_TABLES is
    used when none is given.
    """
    housing_keywords: Tuple[str, ...] = HOUSING_KEYWORDS
    admin_titles: Tuple[str, ...] = ADMIN_TITLES
    contact_keywords: Tuple[str, ...] = CONTACT_KEYWORDS
    link_contact_keywords: Tuple[str, ...] = LINK_CONTACT_KEYWORDS
    location_keywords: Tuple[str, ...] = LOCATION_KEYWORDS
    staff_indicators: Tuple[str, ...] = STAFF_INDICATORS
    staff_directory_patterns: Tuple[str, ...] = STAFF_DIRECTORY_PATTERNS
    housing_path_patterns: Tuple[str, ...] = HOUSING_PATH_PATTERNS
    location_patterns: Tuple[str, ...] = LOCATION_PATTERNS
    path_prefixes: Tuple[str, ...] = PATH_PREFIXES
    location_path_prefixes: Tuple[str, ...] = LOCATION_PATH_PREFIXES
    housing_subdomains: Tuple[str, ...] = HOUSING_SUBDOMAIN_PATTERNS
    hub_path_markers: Tuple[str, ...] = HUB_PATH_MARKERS
    search_query_templates: Tuple[str, ...] = SEARCH_QUERY_TEMPLATES
    site_query_templates: Tuple[str, ...] = SITE_QUERY_TEMPLATES
    staff_section_selectors: Tuple[str, ...] = STAFF_SECTION_SELECTORS
    structured_data_selectors: Tuple[str, ...] = STRUCTURED_DATA_SELECTORS
    location_staff_selectors: Tuple[str, ...] = LOCATION_STAFF_SELECTORS
    community_nav_selectors: Tuple[str, ...] = COMMUNITY_NAV_SELECTORS
    labeled_roles: Tuple[str, ...] = LABELED_ROLES
    name_deny_patterns: Tuple[str, ...] = NAME_DENY_PATTERNS
    file_extensions: Tuple[str, ...] = FILE_EXTENSIONS
    automated_mailbox_markers: Tuple[str, ...] = AUTOMATED_MAILBOX_MARKERS
    location_context_patterns: Tuple[Tuple[str, str], ...] = LOCATION_CONTEXT_PATTERNS
    stop_words: Tuple[str, ...] = STOP_WORDS
    institution_aliases: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: _freeze(INSTITUTION_ALIASES))
    system_abbreviations: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: _freeze(SYSTEM_ABBREVIATIONS))
    alias_noise_words: Tuple[str, ...] = ALIAS_NOISE_WORDS
    multi_campus_prefix: str = MULTI_CAMPUS_PREFIX
    known_domains: Mapping[str, str] = field(default_factory=lambda: _freeze(KNOWN_DOMAINS))
    campus_domains: Mapping[str, str] = field(default_factory=lambda: _freeze(CAMPUS_DOMAINS))
    domain_noise_words: Tuple[str, ...] = DOMAIN_NOISE_WORDS

    def compiled_name_deny_patterns(self) -> Tuple[Pattern, ...]:
        # Case-sensitive pattern for the all-caps rule, the rest ignore case
        return tuple(
            re.compile(p) if p == r'^[A-Z\s]+$' else re.compile(p, re.IGNORECASE)
            for p in self.name_deny_patterns
        )


DEFAULT_TABLES = KeywordTables()


__all__ = [
    'KeywordTables',
    'DEFAULT_TABLES',
    'HOUSING_KEYWORDS',
    'ADMIN_TITLES',
    'CONTACT_KEYWORDS',
    'LOCATION_KEYWORDS',
    'HOUSING_SUBDOMAIN_PATTERNS',
    'STAFF_DIRECTORY_PATTERNS',
    'LOCATION_PATTERNS',
    'INSTITUTION_ALIASES',
    'KNOWN_DOMAINS',
]
