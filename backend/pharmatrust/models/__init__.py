from pharmatrust.models.user import User
from pharmatrust.models.supplier import Supplier
from pharmatrust.models.medicine import Medicine
from pharmatrust.models.customer import Customer
from pharmatrust.models.sale import Sale, SaleItem

__all__ = ["User", "Supplier", "Medicine", "Customer", "Sale", "SaleItem"]
