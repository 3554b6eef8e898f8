"""Aida: WhatsApp assistant for MoneyMatch business onboarding."""
