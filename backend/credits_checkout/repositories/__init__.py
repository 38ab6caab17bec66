from .credit_packages import find_package
from .subscription_plans import find_plan

__all__ = ["find_package", "find_plan"]
