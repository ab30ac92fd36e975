from __future__ import annotations

import re

from glint.context import FileRecord
from glint.models import Severity, Violation
from glint.rules.architecture import FUNC_PATTERN
from glint.rules.base import BaseRule


PACKAGE_PATTERN = re.compile(r"^\s*package\s+([A-Za-z_]\w*)\s*$")
TYPE_DECL_PATTERN = re.compile(r"^\s*type\s+([A-Za-z_]\w*)")
VALID_PACKAGE = re.compile(r"[a-z][a-z0-9]*")
TEST_FUNCTION_PREFIXES = ("Test", "Benchmark", "Example", "Fuzz")
KNOWN_ACRONYMS = {
    "ID", "URL", "URI", "HTTP", "HTTPS", "API", "JSON", "XML", "HTML", "CSS",
    "SQL", "RPC", "TCP", "UDP", "IP", "TLS", "SSL", "SSH", "DNS", "EOF",
    "UUID", "UID", "GID", "CPU", "GPU", "OS", "IO", "UI", "CLI", "OK",
    "ACL", "ASCII", "UTF8", "JWT", "RSA", "AES", "SHA", "MD5", "HMAC",
    "CSRF", "CORS", "GRPC", "REST", "YAML", "TOML", "CSV", "PDF", "AWS",
    "GCP", "CDN", "DTO", "DAO", "ORM", "FIFO", "LIFO", "LRU",
}


def is_exported(name: str) -> bool:
    return name[:1].isupper()


def is_all_caps(name: str) -> bool:
    letters = [ch for ch in name if ch.isalpha()]
    return bool(letters) and all(ch.isupper() for ch in letters)


def stutters(name: str, package: str) -> bool:
    """``user.UserStore`` stutters; ``user.Users`` does not."""
    if not package or len(name) <= len(package):
        return False
    if not name.lower().startswith(package.lower()):
        return False
    return name[len(package)].isupper()


class NamingConventionsRule(BaseRule):
    name = "naming-conventions"
    category = "naming"
    description = "Detects Go naming convention violations (package names, stuttering, underscores, ALL_CAPS)"
    default_severity = Severity.LOW

    def analyze_file(self, record: FileRecord) -> list[Violation]:
        if not record.is_go_file():
            return []
        package = record.go_package
        violations: list[Violation] = []
        for idx, line in enumerate(record.lines, start=1):
            package_match = PACKAGE_PATTERN.search(line)
            if package_match:
                package = package or package_match.group(1)
                violations.extend(self._check_package(record, idx, package_match))
                continue
            func_match = FUNC_PATTERN.search(line)
            if func_match:
                violations.extend(self._check_function(record, idx, func_match, package))
                continue
            type_match = TYPE_DECL_PATTERN.search(line)
            if type_match:
                violations.extend(self._check_type(record, idx, type_match, package))
        return violations

    def _check_package(self, record: FileRecord, idx: int, match: re.Match[str]) -> list[Violation]:
        name = match.group(1)
        if VALID_PACKAGE.fullmatch(name):
            return []
        # Black-box test packages are conventionally named "<pkg>_test".
        if name.endswith("_test") and VALID_PACKAGE.fullmatch(name[: -len("_test")]):
            return []
        return [
            self.create_violation(
                record.rel_path,
                idx,
                f"Package name {name!r} should be a short lowercase identifier",
                column=match.start(1) + 1,
                code=record.line(idx).strip(),
                suggestion="Use a single lowercase word without underscores or mixedCaps",
                metadata={"package": name},
            )
        ]

    def _check_function(self, record: FileRecord, idx: int, match: re.Match[str], package: str) -> list[Violation]:
        name = match.group(2)
        is_method = bool(match.group(1))
        if name in ("main", "init") or (record.is_test_file() and name.startswith(TEST_FUNCTION_PREFIXES)):
            return []
        violations: list[Violation] = []
        column = match.start(2) + 1
        if not is_method and is_exported(name) and stutters(name, package):
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    f"Function name stutters with package name: {package}.{name}",
                    column=column,
                    code=record.line(idx).strip(),
                    suggestion="Remove package name prefix from function name",
                    metadata={"function": name},
                )
            )
        if "_" in name.strip("_"):
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    f"Function name contains underscore: {name}",
                    column=column,
                    code=record.line(idx).strip(),
                    suggestion="Use CamelCase without underscores",
                    metadata={"function": name},
                )
            )
        return violations

    def _check_type(self, record: FileRecord, idx: int, match: re.Match[str], package: str) -> list[Violation]:
        name = match.group(1)
        violations: list[Violation] = []
        column = match.start(1) + 1
        if is_exported(name) and stutters(name, package):
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    f"Type name stutters with package name: {package}.{name}",
                    column=column,
                    code=record.line(idx).strip(),
                    suggestion="Remove package name prefix from type name",
                    metadata={"type": name},
                )
            )
        if len(name) > 2 and is_all_caps(name) and name not in KNOWN_ACRONYMS:
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    f"Type name uses ALL_CAPS instead of PascalCase: {name}",
                    column=column,
                    code=record.line(idx).strip(),
                    suggestion="Use PascalCase for type names",
                    metadata={"type": name},
                )
            )
        elif is_exported(name) and "_" in name:
            violations.append(
                self.create_violation(
                    record.rel_path,
                    idx,
                    f"Exported type name contains underscore: {name}",
                    column=column,
                    code=record.line(idx).strip(),
                    suggestion="Use PascalCase without underscores for exported types",
                    metadata={"type": name},
                )
            )
        return violations
