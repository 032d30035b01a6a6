"""
Wood quality grades, forest products and default product prices.

Standing-tree quality drives two things at the marking stage: which
product the stem can realistically be sold as (stave wood, veneer,
sawlogs, industry wood, firewood...) and the price per m3 applied to it.

- **WoodQualityGrade**: A (excellent) to D (poor), each with a price
  multiplier relative to grade C.
- **ForestProduct**: product catalogue with the minimum grade, typical
  minimum diameter and broadleaf/conifer applicability of each product.
- **QualityAssessment**: quick four-criterion field scoring (0..3 each)
  turned into a grade.
- **classify_premium_product**: best achievable product for a tree.
- **DefaultProductPrices**: roadside prices (EUR/m3) used when the user
  price table has no matching entry.

Usage:
    from pycubage.quality import WoodQualityGrade, DefaultProductPrices, classify_premium_product

    result = classify_premium_product('CH_SESSILE', 'Feuillu', 60.0, WoodQualityGrade.A)
    price = DefaultProductPrices.price_for(result.primary.code, 'CH_SESSILE', WoodQualityGrade.A)
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .logging_config import get_logger
from .utils import normalize_code

__all__ = [
    'WoodQualityGrade',
    'ForestProduct',
    'QualityAssessment',
    'ClassificationResult',
    'classify_premium_product',
    'DefaultProductPrices',
]

logger = get_logger(__name__)


# ============================================================================
# Quality grades
# ============================================================================

class WoodQualityGrade(Enum):
    """Standing-tree quality grade with its price multiplier (C = 1.0)."""
    A = ('A', 'Excellente qualité', 2.5)
    B = ('B', 'Bonne qualité', 1.5)
    C = ('C', 'Qualité moyenne', 1.0)
    D = ('D', 'Qualité médiocre', 0.4)

    def __init__(self, code: str, label: str, multiplier: float):
        self.code = code
        self.label = label
        self.multiplier = multiplier

    @property
    def ordinal(self) -> int:
        """Position on the scale, 0 for A through 3 for D."""
        return list(WoodQualityGrade).index(self)

    @classmethod
    def from_code(cls, code: Optional[str]) -> Optional['WoodQualityGrade']:
        """Grade from its letter (case-insensitive), None if unknown."""
        letter = normalize_code(code)
        for grade in cls:
            if grade.code == letter:
                return grade
        return None

    @classmethod
    def from_ordinal(cls, ordinal: Optional[int]) -> Optional['WoodQualityGrade']:
        """Grade from the 0..3 ordinal stored on tree records."""
        if ordinal is None:
            return None
        grades = list(cls)
        if 0 <= ordinal < len(grades):
            return grades[ordinal]
        return None


# ============================================================================
# Product catalogue
# ============================================================================

class ForestProduct(Enum):
    """Marketable products, from premium broadleaf logs to energy wood.

    Value: (code, label, minimum grade, typical minimum diameter in cm,
    broadleaf product, conifer product).
    """
    # Broadleaf premium
    MERAIN = ('MERAIN', 'Mérain (tonnellerie)', 'A', 55, True, False)
    TRANCHAGE = ('TRANCHAGE', 'Tranchage / placage', 'A', 45, True, False)
    DEROULAGE = ('DEROULAGE', 'Déroulage (contreplaqué)', 'A', 40, True, False)
    SCIAGE_QUAL = ('SCIAGE_Q', 'Sciage qualité / ébénisterie', 'B', 35, True, True)
    # Conifer premium
    GRUME_LONGUE = ('GRUME_L', 'Grume longue (≥12m)', 'A', 35, False, True)
    POTEAU_LIGNE = ('POTEAU', 'Poteau de ligne', 'A', 20, False, True)
    CHARPENTE = ('CHARPENTE', 'Charpente / lamellé-collé', 'B', 25, False, True)
    BARDAGE = ('BARDAGE', 'Bardage / lambris', 'B', 20, True, True)
    # Standard
    SCIAGE_STD = ('SCIAGE_S', 'Sciage standard / charpente', 'C', 25, True, True)
    PIQUET_CLOTURE = ('PIQUET', 'Piquet / clôture', 'C', 10, True, True)
    TRAVERSE = ('TRAVERSE', 'Traverse de chemin de fer', 'B', 30, True, True)
    PALETTE = ('PALETTE', 'Palette / emballage', 'C', 20, True, True)
    # Low grade
    BOIS_INDUSTRIE = ('BI', "Bois d'industrie / trituration", 'D', 10, True, True)
    PATE_PAPIER = ('PATE', 'Pâte à papier', 'D', 7, True, True)
    BOIS_CHAUFFAGE = ('BCh', 'Bois de chauffage', 'D', 7, True, False)
    BOIS_ENERGIE = ('BE', 'Bois énergie / plaquettes', 'D', 7, True, True)

    def __init__(self, code: str, label: str, min_grade: str, min_diameter_cm: int,
                 broadleaf: bool, conifer: bool):
        self.code = code
        self.label = label
        self.min_diameter_cm = min_diameter_cm
        self.broadleaf = broadleaf
        self.conifer = conifer
        self._min_grade = min_grade

    @property
    def min_quality(self) -> WoodQualityGrade:
        return WoodQualityGrade.from_code(self._min_grade)

    @classmethod
    def from_code(cls, code: Optional[str]) -> Optional['ForestProduct']:
        wanted = normalize_code(code)
        for product in cls:
            if product.code.upper() == wanted:
                return product
        return None

    @classmethod
    def for_category(cls, category: Optional[str]) -> List['ForestProduct']:
        """Products applicable to a species category label.

        Labels containing "feuill" select broadleaf products and labels
        containing "résineux"/"resineux" select conifer products. Any other
        label returns the whole catalogue.
        """
        label = (category or '').lower()
        if 'feuill' in label:
            return [p for p in cls if p.broadleaf]
        if 'résineux' in label or 'resineux' in label:
            return [p for p in cls if p.conifer]
        return list(cls)


# ============================================================================
# Field assessment
# ============================================================================

@dataclass
class QualityAssessment:
    """Quick quality scoring of a standing tree.

    Each criterion is scored 0 (worst) to 3 (best):
        rectitude: forked/twisted, curved, straight, very straight
        branchage: very branchy, branchy, pruned, branch-free
        etat_sanitaire: rotten/hollow, mistletoe/fungi, sound, perfect
        defauts_fut: large knots/shakes, medium knots, small knots, none
    """
    tree_id: str
    rectitude: int = 2
    branchage: int = 2
    etat_sanitaire: int = 2
    defauts_fut: int = 2

    @property
    def score(self) -> int:
        """Total score out of 12."""
        return self.rectitude + self.branchage + self.etat_sanitaire + self.defauts_fut

    @property
    def grade(self) -> WoodQualityGrade:
        score = self.score
        if score >= 10:
            return WoodQualityGrade.A
        if score >= 7:
            return WoodQualityGrade.B
        if score >= 4:
            return WoodQualityGrade.C
        return WoodQualityGrade.D


# ============================================================================
# Premium product classifier
# ============================================================================

SLICING_SPECIES = frozenset({
    'CH_SESSILE', 'CH_PEDONCULE', 'HETRE_COMMUN', 'NOYER_COMMUN', 'NOYER_NOIR',
    'CERISIER_MERIS', 'ERABLE_SYC', 'ERABLE_PLANE', 'FRENE_ELEVE',
    'ORME_LISSE', 'ORME_MONT', 'ALISIER_TORM', 'CORMIER', 'POIRIER_SAUV',
})

PEELING_SPECIES = frozenset({
    'PEUPLIER', 'HETRE_COMMUN', 'BOUL_VERRUQ', 'BOUL_PUBESC',
    'AULNE_GLUT', 'TILLEUL_GPF', 'TILLEUL_PTF',
})

SLEEPER_SPECIES = frozenset({
    'CH_SESSILE', 'CH_PEDONCULE', 'CH_PUBESCENT', 'CH_ROUGE',
    'HETRE_COMMUN', 'CHATAIGNIER',
})

# Naturally durable species for stakes and fencing
STAKE_SPECIES = frozenset({
    'ROBINIER', 'CHATAIGNIER', 'CH_SESSILE', 'CH_PEDONCULE',
    'MEL_EUROPE', 'MEL_HYBRIDE',
})


@dataclass(frozen=True)
class ClassificationResult:
    """Primary product, optional fallback product and a short note."""
    primary: ForestProduct
    secondary: Optional[ForestProduct]
    note: str


def _result(primary: ForestProduct, secondary: Optional[ForestProduct],
            note: str) -> ClassificationResult:
    return ClassificationResult(primary=primary, secondary=secondary, note=note)


def classify_premium_product(
    species: str,
    category: Optional[str],
    diameter_cm: float,
    grade: WoodQualityGrade,
    height_m: Optional[float] = None,
) -> ClassificationResult:
    """Best achievable product for a tree.

    A category label containing "feuill" marks a broadleaf; anything else
    (including no label) is treated as a conifer.

    Args:
        species: Species code
        category: Category label, e.g. "Feuillu" or "Résineux"
        diameter_cm: Diameter at breast height (cm)
        grade: Quality grade
        height_m: Total height (m), used for long conifer logs

    Returns:
        ClassificationResult with primary and secondary products
    """
    broadleaf = 'feuill' in (category or '').lower()
    conifer = not broadleaf
    d = int(diameter_cm)
    code = normalize_code(species)

    if broadleaf and grade is WoodQualityGrade.A:
        if code.startswith('CH_') and d >= 55:
            return _result(ForestProduct.MERAIN, ForestProduct.SCIAGE_QUAL,
                           'Chêne apte mérain')
        if d >= 45 and code in SLICING_SPECIES:
            return _result(ForestProduct.TRANCHAGE, ForestProduct.SCIAGE_QUAL,
                           'Apte tranchage / placage')
        if d >= 40 and code in PEELING_SPECIES:
            return _result(ForestProduct.DEROULAGE, ForestProduct.SCIAGE_QUAL,
                           'Apte déroulage')
        if d >= 35:
            return _result(ForestProduct.SCIAGE_QUAL, ForestProduct.SCIAGE_STD,
                           "Bois d'œuvre qualité A")

    if conifer and grade is WoodQualityGrade.A:
        if d >= 35 and (height_m is None or height_m >= 20.0):
            return _result(ForestProduct.GRUME_LONGUE, ForestProduct.SCIAGE_QUAL,
                           'Grume longue qualité A')
        if 18 <= d <= 35:
            return _result(ForestProduct.POTEAU_LIGNE, ForestProduct.CHARPENTE,
                           'Apte poteau de ligne')

    if grade is WoodQualityGrade.B:
        if d >= 35:
            secondary = (ForestProduct.TRAVERSE if broadleaf and code in SLEEPER_SPECIES
                         else ForestProduct.SCIAGE_STD)
            return _result(ForestProduct.SCIAGE_QUAL, secondary, 'Sciage qualité')
        if broadleaf and d >= 32 and code in SLEEPER_SPECIES:
            return _result(ForestProduct.TRAVERSE, ForestProduct.SCIAGE_STD,
                           'Apte traverse')
        if conifer and d >= 25:
            return _result(ForestProduct.CHARPENTE, ForestProduct.BARDAGE,
                           'Charpente / lamellé-collé')
        if d >= 25:
            return _result(ForestProduct.SCIAGE_STD, ForestProduct.PALETTE,
                           'Sciage standard')
        if conifer and d >= 20:
            return _result(ForestProduct.BARDAGE, ForestProduct.PALETTE,
                           'Bardage / lambris')

    if grade is WoodQualityGrade.C:
        if code in STAKE_SPECIES and 10 <= d <= 25:
            return _result(ForestProduct.PIQUET_CLOTURE, ForestProduct.BOIS_CHAUFFAGE,
                           'Piquet / clôture')
        if d >= 25:
            secondary = ForestProduct.BOIS_CHAUFFAGE if broadleaf else ForestProduct.BOIS_ENERGIE
            return _result(ForestProduct.SCIAGE_STD, secondary, 'Sciage courant')
        if d >= 20:
            return _result(ForestProduct.PALETTE, ForestProduct.BOIS_INDUSTRIE,
                           'Palette / emballage')

    if d >= 10:
        secondary = ForestProduct.BOIS_CHAUFFAGE if broadleaf else ForestProduct.PATE_PAPIER
        return _result(ForestProduct.BOIS_INDUSTRIE, secondary, 'Bois industrie / trituration')

    primary = ForestProduct.BOIS_CHAUFFAGE if broadleaf else ForestProduct.BOIS_ENERGIE
    return _result(primary, None, 'Bois énergie / chauffage')


# ============================================================================
# Default roadside prices (EUR/m3)
# ============================================================================

PRODUCT_DEFAULT_PRICES: Dict[str, float] = {
    'MERAIN': 850.0,
    'TRANCHAGE': 380.0,
    'DEROULAGE': 120.0,
    'SCIAGE_Q': 135.0,
    'GRUME_L': 110.0,
    'POTEAU': 60.0,
    'CHARPENTE': 85.0,
    'BARDAGE': 75.0,
    'SCIAGE_S': 70.0,
    'PIQUET': 55.0,
    'TRAVERSE': 90.0,
    'PALETTE': 40.0,
    'BI': 25.0,
    'PATE': 20.0,
    'BCh': 32.0,
    'BE': 16.0,
}

UNKNOWN_PRODUCT_PRICE = 50.0

# Species x product prices, keyed by (species, product)
SPECIES_PRODUCT_PRICES: Dict[tuple, float] = {
    # Sessile oak
    ('CH_SESSILE', 'MERAIN'): 1200.0,
    ('CH_SESSILE', 'TRANCHAGE'): 500.0,
    ('CH_SESSILE', 'SCIAGE_Q'): 185.0,
    ('CH_SESSILE', 'TRAVERSE'): 110.0,
    ('CH_SESSILE', 'SCIAGE_S'): 95.0,
    ('CH_SESSILE', 'BCh'): 38.0,
    ('CH_SESSILE', 'BI'): 30.0,
    # Pedunculate oak
    ('CH_PEDONCULE', 'MERAIN'): 1000.0,
    ('CH_PEDONCULE', 'TRANCHAGE'): 420.0,
    ('CH_PEDONCULE', 'SCIAGE_Q'): 165.0,
    ('CH_PEDONCULE', 'TRAVERSE'): 100.0,
    ('CH_PEDONCULE', 'SCIAGE_S'): 85.0,
    ('CH_PEDONCULE', 'BCh'): 36.0,
    ('CH_PEDONCULE', 'BI'): 28.0,
    # Beech
    ('HETRE_COMMUN', 'TRANCHAGE'): 250.0,
    ('HETRE_COMMUN', 'DEROULAGE'): 130.0,
    ('HETRE_COMMUN', 'SCIAGE_Q'): 95.0,
    ('HETRE_COMMUN', 'TRAVERSE'): 85.0,
    ('HETRE_COMMUN', 'SCIAGE_S'): 55.0,
    ('HETRE_COMMUN', 'PALETTE'): 35.0,
    ('HETRE_COMMUN', 'BCh'): 30.0,
    ('HETRE_COMMUN', 'BI'): 22.0,
    # Ash
    ('FRENE_ELEVE', 'TRANCHAGE'): 300.0,
    ('FRENE_ELEVE', 'SCIAGE_Q'): 130.0,
    ('FRENE_ELEVE', 'SCIAGE_S'): 65.0,
    ('FRENE_ELEVE', 'BCh'): 32.0,
    # Walnut
    ('NOYER_COMMUN', 'TRANCHAGE'): 650.0,
    ('NOYER_COMMUN', 'SCIAGE_Q'): 350.0,
    ('NOYER_COMMUN', 'SCIAGE_S'): 180.0,
    ('NOYER_NOIR', 'TRANCHAGE'): 700.0,
    ('NOYER_NOIR', 'SCIAGE_Q'): 380.0,
    # Wild cherry
    ('CERISIER_MERIS', 'TRANCHAGE'): 400.0,
    ('CERISIER_MERIS', 'SCIAGE_Q'): 180.0,
    ('CERISIER_MERIS', 'SCIAGE_S'): 90.0,
    # Maples
    ('ERABLE_SYC', 'TRANCHAGE'): 320.0,
    ('ERABLE_SYC', 'SCIAGE_Q'): 140.0,
    ('ERABLE_SYC', 'SCIAGE_S'): 70.0,
    ('ERABLE_PLANE', 'SCIAGE_Q'): 120.0,
    ('ERABLE_PLANE', 'SCIAGE_S'): 65.0,
    # Chestnut
    ('CHATAIGNIER', 'SCIAGE_Q'): 110.0,
    ('CHATAIGNIER', 'SCIAGE_S'): 60.0,
    ('CHATAIGNIER', 'PIQUET'): 65.0,
    ('CHATAIGNIER', 'PALETTE'): 35.0,
    ('CHATAIGNIER', 'BCh'): 30.0,
    # Black locust
    ('ROBINIER', 'SCIAGE_Q'): 150.0,
    ('ROBINIER', 'SCIAGE_S'): 80.0,
    ('ROBINIER', 'PIQUET'): 75.0,
    ('ROBINIER', 'POTEAU'): 90.0,
    # Poplar
    ('PEUPLIER', 'DEROULAGE'): 100.0,
    ('PEUPLIER', 'SCIAGE_S'): 40.0,
    ('PEUPLIER', 'PALETTE'): 28.0,
    ('PEUPLIER', 'PATE'): 18.0,
    # Low-value broadleaves
    ('CHARME', 'BCh'): 30.0,
    ('CHARME', 'BI'): 20.0,
    ('BOUL_VERRUQ', 'DEROULAGE'): 85.0,
    ('BOUL_VERRUQ', 'SCIAGE_S'): 45.0,
    ('BOUL_VERRUQ', 'BI'): 22.0,
    ('BOUL_PUBESC', 'BI'): 18.0,
    ('AULNE_GLUT', 'SCIAGE_S'): 40.0,
    ('AULNE_GLUT', 'BI'): 20.0,
    # Douglas fir
    ('DOUGLAS_VERT', 'GRUME_L'): 145.0,
    ('DOUGLAS_VERT', 'SCIAGE_Q'): 120.0,
    ('DOUGLAS_VERT', 'CHARPENTE'): 95.0,
    ('DOUGLAS_VERT', 'BARDAGE'): 85.0,
    ('DOUGLAS_VERT', 'SCIAGE_S'): 80.0,
    ('DOUGLAS_VERT', 'POTEAU'): 70.0,
    ('DOUGLAS_VERT', 'PALETTE'): 42.0,
    ('DOUGLAS_VERT', 'BI'): 28.0,
    ('DOUGLAS_VERT', 'BE'): 18.0,
    # Silver fir
    ('SAPIN_PECTINE', 'GRUME_L'): 110.0,
    ('SAPIN_PECTINE', 'SCIAGE_Q'): 100.0,
    ('SAPIN_PECTINE', 'CHARPENTE'): 80.0,
    ('SAPIN_PECTINE', 'SCIAGE_S'): 65.0,
    ('SAPIN_PECTINE', 'PALETTE'): 38.0,
    ('SAPIN_PECTINE', 'PATE'): 22.0,
    ('SAPIN_PECTINE', 'BI'): 24.0,
    # Norway spruce
    ('EPICEA_COMMUN', 'GRUME_L'): 105.0,
    ('EPICEA_COMMUN', 'SCIAGE_Q'): 95.0,
    ('EPICEA_COMMUN', 'CHARPENTE'): 75.0,
    ('EPICEA_COMMUN', 'BARDAGE'): 65.0,
    ('EPICEA_COMMUN', 'SCIAGE_S'): 60.0,
    ('EPICEA_COMMUN', 'PALETTE'): 35.0,
    ('EPICEA_COMMUN', 'PATE'): 20.0,
    ('EPICEA_COMMUN', 'BI'): 22.0,
    # Larches
    ('MEL_EUROPE', 'GRUME_L'): 130.0,
    ('MEL_EUROPE', 'SCIAGE_Q'): 115.0,
    ('MEL_EUROPE', 'CHARPENTE'): 90.0,
    ('MEL_EUROPE', 'BARDAGE'): 85.0,
    ('MEL_EUROPE', 'SCIAGE_S'): 75.0,
    ('MEL_EUROPE', 'PIQUET'): 60.0,
    ('MEL_EUROPE', 'POTEAU'): 65.0,
    ('MEL_HYBRIDE', 'GRUME_L'): 125.0,
    ('MEL_HYBRIDE', 'SCIAGE_Q'): 110.0,
    ('MEL_HYBRIDE', 'CHARPENTE'): 85.0,
    # Pines
    ('PIN_SYLVESTRE', 'CHARPENTE'): 60.0,
    ('PIN_SYLVESTRE', 'SCIAGE_S'): 55.0,
    ('PIN_SYLVESTRE', 'PALETTE'): 32.0,
    ('PIN_SYLVESTRE', 'PATE'): 18.0,
    ('PIN_SYLVESTRE', 'BI'): 20.0,
    ('PIN_MARITIME', 'SCIAGE_S'): 50.0,
    ('PIN_MARITIME', 'CHARPENTE'): 55.0,
    ('PIN_MARITIME', 'PALETTE'): 30.0,
    ('PIN_MARITIME', 'PATE'): 16.0,
    ('PIN_MARITIME', 'BI'): 18.0,
    ('PIN_LARICIO', 'SCIAGE_Q'): 90.0,
    ('PIN_LARICIO', 'CHARPENTE'): 70.0,
    ('PIN_LARICIO', 'SCIAGE_S'): 60.0,
    ('PIN_LARICIO', 'POTEAU'): 55.0,
    ('PIN_NOIR_AUTR', 'SCIAGE_S'): 55.0,
    ('PIN_NOIR_AUTR', 'CHARPENTE'): 60.0,
    ('PIN_NOIR_AUTR', 'PALETTE'): 30.0,
}

# Species multiplier applied to product defaults when no specific price exists
SPECIES_PRICE_MULTIPLIERS: Dict[str, float] = {
    'CH_SESSILE': 1.40,
    'CH_PEDONCULE': 1.25,
    'NOYER_COMMUN': 2.50,
    'NOYER_NOIR': 2.70,
    'CERISIER_MERIS': 1.55,
    'CORMIER': 2.20,
    'ALISIER_TORM': 2.00,
    'POIRIER_SAUV': 1.35,
    'HETRE_COMMUN': 0.80,
    'FRENE_ELEVE': 1.00,
    'ERABLE_SYC': 1.10,
    'ERABLE_PLANE': 0.95,
    'CHATAIGNIER': 0.90,
    'ROBINIER': 1.15,
    'TILLEUL_GPF': 0.55,
    'TILLEUL_PTF': 0.50,
    'PEUPLIER': 0.60,
    'CHARME': 0.50,
    'BOUL_VERRUQ': 0.55,
    'BOUL_PUBESC': 0.50,
    'AULNE_GLUT': 0.60,
    'SAULE_BLANC': 0.35,
    'SAULE_MARSAULT': 0.30,
    'NOISETIER': 0.30,
    'TREMBLE': 0.45,
    'DOUGLAS_VERT': 1.30,
    'MEL_EUROPE': 1.15,
    'MEL_HYBRIDE': 1.10,
    'PIN_LARICIO': 1.00,
    'CEDRE_ATLAS': 0.95,
    'SAPIN_PECTINE': 0.95,
    'EPICEA_COMMUN': 0.90,
    'PIN_SYLVESTRE': 0.75,
    'PIN_MARITIME': 0.70,
    'PIN_NOIR_AUTR': 0.75,
    'PIN_WEYMOUTH': 0.65,
}


class DefaultProductPrices:
    """Built-in price list, used when the user price table has no entry."""

    defaults = PRODUCT_DEFAULT_PRICES

    @staticmethod
    def price_for(product: str, species: str,
                  grade: WoodQualityGrade = WoodQualityGrade.C) -> float:
        """EUR/m3 for a product, species and quality grade.

        A tabulated species x product price wins. Otherwise the product
        default (50 for an unknown product) is scaled by the species
        multiplier (1.0 for an unknown species). Both are scaled by the
        grade multiplier relative to grade C.
        """
        code = normalize_code(species)
        quality_factor = grade.multiplier / WoodQualityGrade.C.multiplier

        specific = SPECIES_PRODUCT_PRICES.get((code, product))
        if specific is not None:
            return specific * quality_factor

        base = PRODUCT_DEFAULT_PRICES.get(product, UNKNOWN_PRODUCT_PRICE)
        multiplier = SPECIES_PRICE_MULTIPLIERS.get(code, 1.0)
        logger.debug("No specific price for %s:%s, using default %s x %s", code, product, base, multiplier)
        return base * multiplier * quality_factor
