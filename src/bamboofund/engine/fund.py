"""Revolving fund - finance whole farmers and absorb repayments."""

import math
from dataclasses import dataclass


@dataclass
class FinancingDecision:
    """Outcome of one financing step."""
    new_farmers: int  # Farmers financed this year
    amount_lent: float  # Cash moved from the fund into loans
    surface_hectares: float  # Land converted by the new farmers


class RevolvingFund:
    """Cash pool used to finance new cohorts."""

    def __init__(
        self,
        initial_balance: float,
        investment_per_hectare: float,
        farmer_surface_hectares: float
    ):
        """
        Initialize revolving fund.

        Args:
            initial_balance: Starting cash (monetary units, not millions)
            investment_per_hectare: Conversion cost financed per hectare
            farmer_surface_hectares: Hectares converted per farmer
        """
        self.balance = initial_balance
        self.investment_per_hectare = investment_per_hectare
        self.farmer_surface_hectares = farmer_surface_hectares

    @property
    def cost_per_farmer(self) -> float:
        return self.investment_per_hectare * self.farmer_surface_hectares

    def finance(self) -> FinancingDecision:
        """
        Finance as many whole farmers as the current balance covers.

        Formula: new_farmers = floor(balance / (investment_per_hectare × surface))

        The rounded quotient can land on a count whose loans exceed the balance,
        so the count is stepped back until it fits. Loans are charged with the
        same cost product, so the balance never goes below zero.

        Returns:
            Financing decision; the balance is reduced by the amount lent
        """
        cost = self.cost_per_farmer
        new_farmers = max(0, math.floor(self.balance / cost))
        while new_farmers > 0 and new_farmers * cost > self.balance:
            new_farmers -= 1
        amount_lent = new_farmers * cost
        self.balance -= amount_lent

        return FinancingDecision(
            new_farmers=new_farmers,
            amount_lent=amount_lent,
            surface_hectares=new_farmers * self.farmer_surface_hectares
        )

    def credit(self, repayments: float, recapitalization: float) -> None:
        """Return loan repayments and recapitalized revenue to the fund."""
        self.balance += repayments + recapitalization
