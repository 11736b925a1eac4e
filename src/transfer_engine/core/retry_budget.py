"""
Бюджет повторов дескриптора.

Правила:
- Бюджет общий для повторов после ошибок транспорта и для переходов по редиректам
- Успешная попытка бюджет НЕ тратит
- Каждый не-успешный исход списывает одну единицу; когда бюджет уходит
  в минус, дескриптор завершается с FAILED
"""

import logging

from .descriptor import RequestDescriptor

logger = logging.getLogger(__name__)


class RetryBudget:
    """
    Механизм списания бюджета повторов.

    Examples:
        >>> budget = RetryBudget()
        >>> budget.reset(descriptor)
        >>> if budget.consume(descriptor):
        >>>     controller.prepare(descriptor)
    """

    def reset(self, descriptor: RequestDescriptor) -> None:
        """Заполнить бюджет заново перед submit."""
        descriptor.retry_budget = descriptor.max_retry_count
        descriptor.attempts = 0

    def consume(self, descriptor: RequestDescriptor) -> bool:
        """
        Списать одну единицу за не-успешный исход.

        Returns:
            True если можно делать ещё одну попытку
        """
        descriptor.retry_budget -= 1
        if descriptor.retry_budget < 0:
            logger.debug(
                f"Retry budget exhausted after {descriptor.attempts} attempt(s): {descriptor.url}"
            )
            return False
        return True

    @staticmethod
    def remaining(descriptor: RequestDescriptor) -> int:
        """Сколько ещё попыток осталось."""
        return max(descriptor.retry_budget, 0)
