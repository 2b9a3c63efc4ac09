"""Organizational unit list offered as suggestions in the form."""

from __future__ import annotations

from collections.abc import Iterable


class OrganizationalUnitLookup:
    """Read-only table of OU distinguished names, filled once at startup."""

    def __init__(self, distinguished_names: Iterable[str]) -> None:
        unique = {dn.lower(): dn for dn in distinguished_names if dn.strip()}
        self._dns: tuple[str, ...] = tuple(sorted(unique.values(), key=str.lower))

    @classmethod
    def from_directory(cls, directory) -> OrganizationalUnitLookup:
        return cls(directory.list_organizational_units())

    def __len__(self) -> int:
        return len(self._dns)

    def __contains__(self, dn: object) -> bool:
        return isinstance(dn, str) and dn.lower() in (d.lower() for d in self._dns)

    def all(self) -> tuple[str, ...]:
        return self._dns

    def suggest(self, query: str = "", limit: int = 20) -> list[str]:
        """Return DNs containing ``query``, case-insensitively.

        DNs whose leading RDN starts with the query come first, e.g. ``fin``
        ranks ``OU=Finance,...`` ahead of ``OU=Groups,OU=Finance,...``.
        """
        query = query.strip().lower()
        if not query:
            return list(self._dns[:limit])

        def leading_value(dn: str) -> str:
            first = dn.split(",", 1)[0]
            return first.split("=", 1)[-1].strip().lower()

        matches = [dn for dn in self._dns if query in dn.lower()]
        matches.sort(key=lambda dn: not leading_value(dn).startswith(query))
        return matches[:limit]
