"""
Domain resolution: institution name to primary .edu hostname.

Search first ("<name> site:.edu", shortest .edu host wins), then candidate
generation from the registries and the name itself. A direct registry hit
is trusted as is; every generated candidate must pass a live probe before
it is returned. Network failures are "no signal" and never propagate.
"""

import re
from typing import List, Optional

from loguru import logger

from config.keywords import DEFAULT_TABLES, KeywordTables
from config.settings import DOMAIN_PROBE_TIMEOUT
from housing_contacts.exceptions import FetchError
from housing_contacts.fetcher import PageFetcher
from housing_contacts.search import SearchClient
from housing_contacts.name_normalizer import normalize
from housing_contacts.utils import extract_hostname, is_edu_hostname


def _contains_words(text: str, phrase: str) -> bool:
    return re.search(rf'\b{re.escape(phrase)}\b', text) is not None


class DomainResolver:
    """
    Resolves an institution name to a verified hostname or None.
    """

    def __init__(
        self,
        search_client: SearchClient,
        fetcher: PageFetcher,
        tables: Optional[KeywordTables] = None,
        probe_timeout: float = DOMAIN_PROBE_TIMEOUT,
    ):
        self.search_client = search_client
        self.fetcher = fetcher
        self.tables = tables or DEFAULT_TABLES
        self.probe_timeout = probe_timeout

    def resolve(self, name: str) -> Optional[str]:
        """
        Resolve a name to its primary domain.

        Args:
            name: Free-text institution name

        Returns:
            Hostname such as 'berkeley.edu', or None when nothing resolves
        """
        domain = self.search_for_domain(name)
        if domain:
            logger.success(f"Resolved domain via search: {name} -> {domain}")
            return domain

        logger.info(f"No domain in search results for '{name}', trying fallback strategies")
        domain = self.resolve_from_candidates(name)
        if domain:
            logger.success(f"Resolved domain via fallback: {name} -> {domain}")
        else:
            logger.warning(f"Could not resolve a domain for '{name}'")
        return domain

    def search_for_domain(self, name: str) -> Optional[str]:
        """Shortest .edu hostname among the search results, or None."""
        query = f"{name} site:.edu"

        try:
            results = self.search_client.search(query)
        except FetchError as e:
            logger.warning(f"Domain search failed: {e}")
            return None

        hosts = set()
        for result in results:
            hostname = extract_hostname(result.href)
            if is_edu_hostname(hostname):
                hosts.add(hostname)

        if not hosts:
            return None

        return sorted(hosts, key=lambda host: (len(host), host))[0]

    def registry_domain(self, name: str) -> Optional[str]:
        """
        Known domain for the input, matched on whole words.

        The longest registry name found inside the input wins ('cal poly
        pomona' over 'pomona'). Failing that, the shortest registry name
        that contains the input is used ('santa clara' -> 'santa clara
        university').
        """
        lower_name = normalize(name)
        if not lower_name:
            return None

        known = self.tables.known_domains
        inside = [key for key in known if _contains_words(lower_name, key)]
        if inside:
            return known[max(inside, key=len)]

        containing = [key for key in known if _contains_words(key, lower_name)]
        if containing:
            return known[min(containing, key=len)]
        return None

    def candidate_domains(self, name: str) -> List[str]:
        """
        Ordered guesses for the domain, excluding the registry hit.

        Multi-campus patterns first, then word concatenations of the name.
        """
        lower_name = name.lower()
        candidates: List[str] = []

        campus_match = re.search(r'university of california[,\s]+(.+)', lower_name)
        if campus_match:
            city = re.sub(r'[,\s]+', '', campus_match.group(1).strip())
            spaced_city = re.sub(r'[,\s]+', ' ', campus_match.group(1).strip())
            known = (self.tables.campus_domains.get(city)
                     or self.tables.campus_domains.get(spaced_city))
            if known:
                candidates.append(known)
            elif re.sub(r'[^a-z]', '', city):
                candidates.append(f"uc{re.sub(r'[^a-z]', '', city)}.edu")

        cal_state_match = re.search(r'(?:california state university|cal state)[,\s]+(.+)', lower_name)
        if cal_state_match:
            city = re.sub(r'[^a-z]', '', cal_state_match.group(1))
            if city:
                candidates.extend([f"csu{city}.edu", f"{city}.edu"])

        if not candidates:
            words = [
                word for word in re.sub(r'[^a-z\s]', '', lower_name).split()
                if word not in self.tables.domain_noise_words
            ]
            if words:
                candidates.extend([
                    f"{''.join(words)}.edu",
                    f"{words[0]}.edu",
                    f"{'-'.join(words)}.edu",
                ])
                if len(words) > 1:
                    candidates.append(f"{words[0]}{words[-1]}.edu")

        return list(dict.fromkeys(candidates))

    def resolve_from_candidates(self, name: str) -> Optional[str]:
        """Registry hit without probing, otherwise the first reachable guess."""
        known = self.registry_domain(name)
        if known:
            logger.info(f"Registry hit for '{name}': {known}")
            return known

        for domain in self.candidate_domains(name):
            if self.fetcher.is_reachable(f"https://{domain}", timeout=self.probe_timeout):
                logger.info(f"Found working domain: {domain}")
                return domain
            logger.debug(f"Domain not accessible: {domain}")

        return None


__all__ = ['DomainResolver']
