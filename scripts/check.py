#!/usr/bin/env python3
"""
Проверка качества transfer-engine перед коммитом.

Шаги:
- black (форматирование)
- ruff (линтинг)
- mypy (типы) - пропускается с --fast
- pytest (unit + integration) - пропускается с --skip-tests

Usage:
    python scripts/check.py
    python scripts/check.py --fast
    python scripts/check.py --fix
    python scripts/check.py --skip-tests --fix
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import List, Tuple

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src" / "transfer_engine"
TESTS = ROOT / "tests"


class Colors:
    GREEN = '\033[92m'
    RED = '\033[91m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    BOLD = '\033[1m'
    END = '\033[0m'


def run_step(name: str, command: List[str]) -> bool:
    """
    Запустить один шаг проверки.

    Отсутствующий инструмент не валит проверку, только предупреждение.
    """
    print(f"\n{Colors.BOLD}{Colors.BLUE}▶ {name}{Colors.END}")
    try:
        result = subprocess.run(
            command,
            cwd=ROOT,
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='ignore'
        )
    except FileNotFoundError:
        print(f"{Colors.YELLOW}⚠ {command[0]} не установлен - SKIPPED{Colors.END}")
        return True

    if result.returncode == 0:
        print(f"{Colors.GREEN}✓ {name} - OK{Colors.END}")
        return True

    print(f"{Colors.RED}✗ {name} - FAILED{Colors.END}")
    output = (result.stdout + result.stderr).strip()
    if output:
        print(output[-2000:])
    return False


def build_steps(args: argparse.Namespace) -> List[Tuple[str, List[str]]]:
    paths = [str(SRC), str(TESTS)]
    steps = []

    if args.fix:
        steps.append(("Форматирование (black)", ["black", *paths]))
        steps.append(("Линтинг (ruff --fix)", ["ruff", "check", *paths, "--fix"]))
    else:
        steps.append(("Форматирование (black --check)", ["black", "--check", *paths]))
        steps.append(("Линтинг (ruff)", ["ruff", "check", *paths]))

    if not args.fast:
        steps.append(("Типы (mypy)", ["mypy", str(SRC), "--ignore-missing-imports"]))

    if not args.skip_tests:
        steps.append(("Тесты (pytest)", [sys.executable, "-m", "pytest", "-q", str(TESTS)]))

    return steps


def main() -> int:
    parser = argparse.ArgumentParser(description="Проверка качества transfer-engine")
    parser.add_argument("--fast", action="store_true", help="Без mypy")
    parser.add_argument("--fix", action="store_true", help="Автоматические исправления")
    parser.add_argument("--skip-tests", action="store_true", help="Только линтеры")
    args = parser.parse_args()

    print(f"\n{Colors.BOLD}{'=' * 60}")
    print("  transfer-engine - проверка качества")
    print(f"{'=' * 60}{Colors.END}")

    results = [(name, run_step(name, command)) for name, command in build_steps(args)]

    print(f"\n{Colors.BOLD}{'=' * 60}{Colors.END}")
    for name, success in results:
        color = Colors.GREEN if success else Colors.RED
        status = "✓ PASSED" if success else "✗ FAILED"
        print(f"{color}{status:12}{Colors.END} {name}")

    if all(success for _, success in results):
        print(f"\n{Colors.GREEN}{Colors.BOLD}✓ Все проверки прошли{Colors.END}\n")
        return 0

    print(f"\n{Colors.RED}{Colors.BOLD}✗ Есть ошибки{Colors.END}\n")
    return 1


if __name__ == "__main__":
    sys.exit(main())
