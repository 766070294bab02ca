"""
Canonical credit modality taxonomy.

Static classification data for modality auto-discovery. Entry order in
MODALITY_PATTERNS is the tie-break when a name matches several codes, so new
heuristics are added here rather than in the discovery control flow.
"""

from typing import Dict, Optional, Tuple

RateRange = Tuple[float, float]

DEFAULT_INTEREST_RANGE: RateRange = (0.01, 0.10)
DEFAULT_RISK_LEVEL = "medium"
UNKNOWN_MODALITY_CODE = "UNKNOWN_MODALITY"

RISK_LEVELS = ("low", "medium", "high")

MODALITY_PATTERNS: Dict[str, Dict] = {
    "PERSONAL_CREDIT": {
        "keywords": ["pessoal", "personal", "emprestimo", "loan"],
        "interest_range": (0.02, 0.15),  # 2% - 15% a.m.
        "risk_level": "high",
        "name": "Crédito Pessoal",
        "description": "Empréstimo pessoal sem garantia específica",
    },
    "PAYROLL_CREDIT": {
        "keywords": ["consignado", "payroll", "folha", "desconto"],
        "interest_range": (0.01, 0.03),
        "risk_level": "low",
        "name": "Crédito Consignado",
        "description": "Empréstimo com desconto em folha de pagamento",
    },
    "VEHICLE_FINANCING": {
        "keywords": ["veiculo", "vehicle", "auto", "carro", "moto", "financiamento"],
        "interest_range": (0.008, 0.025),
        "risk_level": "medium",
        "name": "Financiamento de Veículos",
        "description": "Financiamento para compra de veículos",
    },
    "REAL_ESTATE_FINANCING": {
        "keywords": ["imobiliario", "real estate", "casa", "imovel", "habitacao"],
        "interest_range": (0.006, 0.015),
        "risk_level": "medium",
        "name": "Financiamento Imobiliário",
        "description": "Financiamento para compra de imóveis",
    },
    "CREDIT_CARD": {
        "keywords": ["cartao", "card", "credito"],
        "interest_range": (0.08, 0.20),
        "risk_level": "high",
        "name": "Cartão de Crédito",
        "description": "Limite de crédito em cartão",
    },
    "OVERDRAFT": {
        "keywords": ["especial", "overdraft", "cheque", "limite"],
        "interest_range": (0.10, 0.25),
        "risk_level": "high",
        "name": "Cheque Especial",
        "description": "Limite para conta corrente",
    },
    "REVOLVING_CREDIT": {
        "keywords": ["rotativo", "revolving", "renovavel", "pre-aprovado"],
        "interest_range": (0.05, 0.18),
        "risk_level": "high",
        "name": "Crédito Rotativo",
        "description": "Crédito pré-aprovado renovável",
    },
}


def interest_range_for(code: Optional[str]) -> RateRange:
    pattern = MODALITY_PATTERNS.get(code or "")
    return pattern["interest_range"] if pattern else DEFAULT_INTEREST_RANGE


def risk_level_for(code: Optional[str]) -> str:
    pattern = MODALITY_PATTERNS.get(code or "")
    return pattern["risk_level"] if pattern else DEFAULT_RISK_LEVEL
