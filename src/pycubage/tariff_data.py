"""
Static coefficient tables for the French volume tariffs.

Tables are keyed the same way as the published sources:

- **Schaeffer 1 entrée** (Schaeffer, 1949): V = a + b * C^2, C = circumference
  at 1.30 m in metres, 16 numbered tariffs.
- **Schaeffer 2 entrées**: V = a + b * C^2 * H, 8 numbered tariffs.
- **Algan** (Algan 1958, Pardé & Bouchon 1988): V = a * D^b * H^c per species,
  D in cm, H in m.
- **Tarifs rapides IFN**: V = a0 + a1*D + a2*D^2 in dm3, 36 numbered tariffs.
- **Tarifs lents IFN**: V = a0 + a1*D^2 + a2*D^2*H in dm3, 8 numbered tariffs.
- **Coefficients de forme**: f in V = pi/4 * (D/100)^2 * H * f.
- **Règles de découpe**: default split of a stem volume between products.

All volumes are "bois fort tige" (merchantable stem to a 7 cm top) in m3.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

__all__ = [
    'SCHAEFFER_ONE_ENTRY',
    'SCHAEFFER_TWO_ENTRY',
    'ALGAN_COEFFICIENTS',
    'ALGAN_MEDIAN_SPECIES',
    'IFN_RAPIDE',
    'IFN_LENT',
    'FORM_COEFFICIENTS',
    'DEFAULT_FORM_COEFFICIENT',
    'SPECIES_TO_IFN_RAPIDE',
    'SPECIES_TO_IFN_LENT',
    'CutRule',
    'CUT_RULES_BROADLEAF',
    'CUT_RULES_CONIFER',
    'CUT_RULES_SPECIES',
]


# ============================================================================
# Schaeffer
# ============================================================================

# Schaeffer one-entry tariffs: V = a + b * C^2 (C in m, V in m3)
SCHAEFFER_ONE_ENTRY: Dict[int, Dict[str, float]] = {
    1: {'a': -0.0046, 'b': 0.3979},
    2: {'a': -0.0104, 'b': 0.5207},
    3: {'a': -0.0176, 'b': 0.6547},
    4: {'a': -0.0263, 'b': 0.8012},
    5: {'a': -0.0367, 'b': 0.9615},
    6: {'a': -0.0490, 'b': 1.1369},
    7: {'a': -0.0634, 'b': 1.3286},
    8: {'a': -0.0802, 'b': 1.5381},   # average tariff
    9: {'a': -0.0996, 'b': 1.7666},
    10: {'a': -0.1220, 'b': 2.0158},
    11: {'a': -0.1477, 'b': 2.2871},
    12: {'a': -0.1771, 'b': 2.5823},
    13: {'a': -0.2106, 'b': 2.9029},
    14: {'a': -0.2488, 'b': 3.2509},
    15: {'a': -0.2921, 'b': 3.6282},
    16: {'a': -0.3412, 'b': 4.0368},
}

# Schaeffer two-entry tariffs: V = a + b * C^2 * H (C in m, H in m, V in m3)
SCHAEFFER_TWO_ENTRY: Dict[int, Dict[str, float]] = {
    1: {'a': -0.0015, 'b': 0.02006},
    2: {'a': -0.0031, 'b': 0.02450},
    3: {'a': -0.0053, 'b': 0.02946},
    4: {'a': -0.0082, 'b': 0.03498},   # average tariff
    5: {'a': -0.0120, 'b': 0.04112},
    6: {'a': -0.0169, 'b': 0.04794},
    7: {'a': -0.0231, 'b': 0.05550},
    8: {'a': -0.0309, 'b': 0.06389},
}


# ============================================================================
# Algan power law
# ============================================================================

# V = a * D^b * H^c (D in cm, H in m, V in m3)
ALGAN_COEFFICIENTS: Dict[str, Dict[str, float]] = {
    # Broadleaves
    'CH_SESSILE': {'a': 0.0000423, 'b': 2.118, 'c': 0.872},
    'CH_PEDONCULE': {'a': 0.0000447, 'b': 2.103, 'c': 0.883},
    'HETRE_COMMUN': {'a': 0.0000362, 'b': 2.158, 'c': 0.860},
    'CHARME': {'a': 0.0000488, 'b': 2.027, 'c': 0.920},
    'CHATAIGNIER': {'a': 0.0000412, 'b': 2.130, 'c': 0.870},
    'FRENE_ELEVE': {'a': 0.0000380, 'b': 2.148, 'c': 0.862},
    'ERABLE_SYC': {'a': 0.0000395, 'b': 2.132, 'c': 0.875},
    'ERABLE_PLANE': {'a': 0.0000410, 'b': 2.115, 'c': 0.885},
    'ERABLE_CHAMP': {'a': 0.0000450, 'b': 2.060, 'c': 0.910},
    'BOUL_VERRUQ': {'a': 0.0000520, 'b': 1.980, 'c': 0.950},
    'BOUL_PUBESC': {'a': 0.0000540, 'b': 1.965, 'c': 0.958},
    'AULNE_GLUT': {'a': 0.0000510, 'b': 1.990, 'c': 0.945},
    'AULNE_BLANC': {'a': 0.0000530, 'b': 1.975, 'c': 0.952},
    'TIL_PET_FEUIL': {'a': 0.0000430, 'b': 2.085, 'c': 0.895},
    'TIL_GR_FEUIL': {'a': 0.0000420, 'b': 2.095, 'c': 0.890},
    'ORME_CHAMP': {'a': 0.0000415, 'b': 2.100, 'c': 0.888},
    'ORME_LISSE': {'a': 0.0000400, 'b': 2.115, 'c': 0.880},
    'ORME_MONT': {'a': 0.0000390, 'b': 2.125, 'c': 0.875},
    'ROBINIER': {'a': 0.0000395, 'b': 2.135, 'c': 0.868},
    'NOYER_COMMUN': {'a': 0.0000370, 'b': 2.150, 'c': 0.858},
    'NOYER_NOIR': {'a': 0.0000365, 'b': 2.155, 'c': 0.855},
    'CERISIER_MERIS': {'a': 0.0000388, 'b': 2.140, 'c': 0.865},
    'CORMIER': {'a': 0.0000375, 'b': 2.145, 'c': 0.862},
    'ALISIER_TORM': {'a': 0.0000385, 'b': 2.135, 'c': 0.868},
    'ALISIER_BLANC': {'a': 0.0000390, 'b': 2.130, 'c': 0.870},
    'SORB_OISEL': {'a': 0.0000440, 'b': 2.065, 'c': 0.905},
    'SAULE_BLANC': {'a': 0.0000560, 'b': 1.950, 'c': 0.965},
    'SAULE_MARSAULT': {'a': 0.0000580, 'b': 1.935, 'c': 0.972},
    'PEUPLIER_HYBR': {'a': 0.0000600, 'b': 1.920, 'c': 0.980},
    'PEUPLIER_NOIR': {'a': 0.0000570, 'b': 1.942, 'c': 0.968},
    'TREMBLE': {'a': 0.0000555, 'b': 1.955, 'c': 0.960},
    'POMMIER_SAUV': {'a': 0.0000445, 'b': 2.070, 'c': 0.908},
    'POIRIER_SAUV': {'a': 0.0000435, 'b': 2.080, 'c': 0.900},
    # Conifers
    'PIN_SYLVESTRE': {'a': 0.0000318, 'b': 2.218, 'c': 0.815},
    'PIN_MARITIME': {'a': 0.0000345, 'b': 2.175, 'c': 0.840},
    'PIN_NOIR_AUTR': {'a': 0.0000328, 'b': 2.200, 'c': 0.828},
    'PIN_LARICIO': {'a': 0.0000310, 'b': 2.235, 'c': 0.808},
    'PIN_WEYMOUTH': {'a': 0.0000350, 'b': 2.165, 'c': 0.845},
    'EPICEA_COMMUN': {'a': 0.0000355, 'b': 2.182, 'c': 0.832},
    'SAPIN_PECTINE': {'a': 0.0000378, 'b': 2.160, 'c': 0.848},
    'DOUGLAS_VERT': {'a': 0.0000298, 'b': 2.262, 'c': 0.795},
    'MEL_EUROPE': {'a': 0.0000335, 'b': 2.190, 'c': 0.835},
    'MEL_HYBRIDE': {'a': 0.0000330, 'b': 2.195, 'c': 0.832},
    'GENEVRIER': {'a': 0.0000320, 'b': 2.210, 'c': 0.820},
    'IF': {'a': 0.0000380, 'b': 2.155, 'c': 0.850},
    # Minor species
    'NOISETIER': {'a': 0.0000600, 'b': 1.900, 'c': 0.990},
    'FUSAIN': {'a': 0.0000500, 'b': 2.000, 'c': 0.930},
    'HOUX': {'a': 0.0000580, 'b': 1.920, 'c': 0.975},
}

# Coefficients used when a species has no Algan entry
ALGAN_MEDIAN_SPECIES = 'HETRE_COMMUN'


# ============================================================================
# IFN tariffs
# ============================================================================

# IFN fast tariffs: V = a0 + a1*D + a2*D^2 (D in cm, V in dm3)
IFN_RAPIDE: Dict[int, Dict[str, float]] = {
    1: {'a0': -4.28, 'a1': 0.280, 'a2': 0.0340},
    2: {'a0': -5.34, 'a1': 0.364, 'a2': 0.0449},
    3: {'a0': -6.58, 'a1': 0.464, 'a2': 0.0580},
    4: {'a0': -7.99, 'a1': 0.582, 'a2': 0.0736},
    5: {'a0': -9.59, 'a1': 0.721, 'a2': 0.0920},
    6: {'a0': -11.38, 'a1': 0.883, 'a2': 0.1138},
    7: {'a0': -13.38, 'a1': 1.072, 'a2': 0.1392},
    8: {'a0': -15.61, 'a1': 1.290, 'a2': 0.1690},
    9: {'a0': -18.07, 'a1': 1.540, 'a2': 0.2036},
    10: {'a0': -20.79, 'a1': 1.826, 'a2': 0.2436},
    11: {'a0': -23.78, 'a1': 2.150, 'a2': 0.2896},
    12: {'a0': -27.05, 'a1': 2.518, 'a2': 0.3424},
    13: {'a0': -30.64, 'a1': 2.932, 'a2': 0.4028},
    14: {'a0': -34.55, 'a1': 3.398, 'a2': 0.4716},
    15: {'a0': -38.82, 'a1': 3.920, 'a2': 0.5500},
    16: {'a0': -43.46, 'a1': 4.504, 'a2': 0.6388},
    17: {'a0': -48.50, 'a1': 5.156, 'a2': 0.7396},
    18: {'a0': -53.96, 'a1': 5.880, 'a2': 0.8536},
    19: {'a0': -59.88, 'a1': 6.684, 'a2': 0.9824},
    20: {'a0': -66.29, 'a1': 7.574, 'a2': 1.1276},
    21: {'a0': -73.21, 'a1': 8.558, 'a2': 1.2912},
    22: {'a0': -80.70, 'a1': 9.644, 'a2': 1.4752},
    23: {'a0': -88.78, 'a1': 10.840, 'a2': 1.6820},
    24: {'a0': -97.50, 'a1': 12.156, 'a2': 1.9140},
    25: {'a0': -106.91, 'a1': 13.600, 'a2': 2.1740},
    26: {'a0': -117.06, 'a1': 15.184, 'a2': 2.4648},
    27: {'a0': -127.98, 'a1': 16.918, 'a2': 2.7896},
    28: {'a0': -139.74, 'a1': 18.812, 'a2': 3.1520},
    29: {'a0': -152.38, 'a1': 20.880, 'a2': 3.5556},
    30: {'a0': -165.95, 'a1': 23.132, 'a2': 4.0044},
    31: {'a0': -180.52, 'a1': 25.584, 'a2': 4.5028},
    32: {'a0': -196.12, 'a1': 28.250, 'a2': 5.0552},
    33: {'a0': -212.84, 'a1': 31.146, 'a2': 5.6664},
    34: {'a0': -230.73, 'a1': 34.288, 'a2': 6.3412},
    35: {'a0': -249.86, 'a1': 37.694, 'a2': 7.0848},
    36: {'a0': -270.30, 'a1': 41.380, 'a2': 7.9028},
}

# IFN slow tariffs: V = a0 + a1*D^2 + a2*D^2*H (D in cm, H in m, V in dm3)
IFN_LENT: Dict[int, Dict[str, float]] = {
    1: {'a0': -4.50, 'a1': 0.0140, 'a2': 0.02032},
    2: {'a0': -5.60, 'a1': 0.0180, 'a2': 0.02680},
    3: {'a0': -6.90, 'a1': 0.0230, 'a2': 0.03468},
    4: {'a0': -8.40, 'a1': 0.0290, 'a2': 0.04408},
    5: {'a0': -10.10, 'a1': 0.0360, 'a2': 0.05520},
    6: {'a0': -12.00, 'a1': 0.0450, 'a2': 0.06820},
    7: {'a0': -14.10, 'a1': 0.0550, 'a2': 0.08340},
    8: {'a0': -16.50, 'a1': 0.0670, 'a2': 0.10120},
}

# Recommended IFN fast tariff number per species
SPECIES_TO_IFN_RAPIDE: Dict[str, int] = {
    # Broadleaves
    'CH_SESSILE': 12, 'CH_PEDONCULE': 13, 'HETRE_COMMUN': 14, 'CHARME': 8,
    'CHATAIGNIER': 11, 'FRENE_ELEVE': 12, 'ERABLE_SYC': 11, 'ERABLE_PLANE': 10,
    'ERABLE_CHAMP': 8, 'BOUL_VERRUQ': 8, 'BOUL_PUBESC': 7, 'AULNE_GLUT': 9,
    'AULNE_BLANC': 8, 'TIL_PET_FEUIL': 10, 'TIL_GR_FEUIL': 10, 'ORME_CHAMP': 10,
    'ORME_LISSE': 11, 'ORME_MONT': 11, 'ROBINIER': 10, 'NOYER_COMMUN': 12,
    'NOYER_NOIR': 13, 'CERISIER_MERIS': 11, 'CORMIER': 10, 'ALISIER_TORM': 9,
    'ALISIER_BLANC': 9, 'SORB_OISEL': 7, 'SAULE_BLANC': 8, 'SAULE_MARSAULT': 6,
    'PEUPLIER_HYBR': 14, 'PEUPLIER_NOIR': 12, 'TREMBLE': 10, 'POMMIER_SAUV': 7,
    'POIRIER_SAUV': 8, 'NOISETIER': 4,
    # Conifers
    'PIN_SYLVESTRE': 12, 'PIN_MARITIME': 14, 'PIN_NOIR_AUTR': 13, 'PIN_LARICIO': 15,
    'PIN_WEYMOUTH': 12, 'EPICEA_COMMUN': 16, 'SAPIN_PECTINE': 17, 'DOUGLAS_VERT': 20,
    'MEL_EUROPE': 14, 'MEL_HYBRIDE': 14,
}

# Recommended IFN slow tariff number per species
SPECIES_TO_IFN_LENT: Dict[str, int] = {
    'CH_SESSILE': 4, 'CH_PEDONCULE': 4, 'HETRE_COMMUN': 5, 'CHARME': 3,
    'CHATAIGNIER': 4, 'FRENE_ELEVE': 4, 'ERABLE_SYC': 4, 'BOUL_VERRUQ': 3,
    'AULNE_GLUT': 3, 'ROBINIER': 4, 'NOYER_COMMUN': 4, 'CERISIER_MERIS': 4,
    'PEUPLIER_HYBR': 5,
    'PIN_SYLVESTRE': 4, 'PIN_MARITIME': 5, 'PIN_NOIR_AUTR': 4, 'PIN_LARICIO': 5,
    'EPICEA_COMMUN': 5, 'SAPIN_PECTINE': 6, 'DOUGLAS_VERT': 7, 'MEL_EUROPE': 5,
    'MEL_HYBRIDE': 5,
}


# ============================================================================
# Form coefficients
# ============================================================================

# f in V = pi/4 * (D/100)^2 * H * f; '*' applies to unlisted species
FORM_COEFFICIENTS: Dict[str, float] = {
    # Broadleaves
    'CH_SESSILE': 0.46, 'CH_PEDONCULE': 0.47, 'HETRE_COMMUN': 0.45, 'CHARME': 0.48,
    'CHATAIGNIER': 0.46, 'FRENE_ELEVE': 0.44, 'ERABLE_SYC': 0.45, 'ERABLE_PLANE': 0.46,
    'ERABLE_CHAMP': 0.47, 'BOUL_VERRUQ': 0.48, 'BOUL_PUBESC': 0.49, 'AULNE_GLUT': 0.47,
    'AULNE_BLANC': 0.48, 'TIL_PET_FEUIL': 0.46, 'TIL_GR_FEUIL': 0.46, 'ORME_CHAMP': 0.46,
    'ORME_LISSE': 0.45, 'ORME_MONT': 0.44, 'ROBINIER': 0.45, 'NOYER_COMMUN': 0.44,
    'NOYER_NOIR': 0.43, 'CERISIER_MERIS': 0.45, 'CORMIER': 0.44, 'ALISIER_TORM': 0.45,
    'ALISIER_BLANC': 0.46, 'SORB_OISEL': 0.47, 'SAULE_BLANC': 0.49, 'SAULE_MARSAULT': 0.50,
    'PEUPLIER_HYBR': 0.42, 'PEUPLIER_NOIR': 0.43, 'TREMBLE': 0.44, 'POMMIER_SAUV': 0.47,
    'POIRIER_SAUV': 0.46, 'NOISETIER': 0.51, 'FUSAIN': 0.50, 'HOUX': 0.52,
    # Conifers
    'PIN_SYLVESTRE': 0.42, 'PIN_MARITIME': 0.40, 'PIN_NOIR_AUTR': 0.41, 'PIN_LARICIO': 0.40,
    'PIN_WEYMOUTH': 0.41, 'EPICEA_COMMUN': 0.43, 'SAPIN_PECTINE': 0.44, 'DOUGLAS_VERT': 0.39,
    'MEL_EUROPE': 0.41, 'MEL_HYBRIDE': 0.41, 'GENEVRIER': 0.42, 'IF': 0.44,
    '*': 0.45,
}

# Used when the table has neither the species nor a '*' entry
DEFAULT_FORM_COEFFICIENT = 0.45


# ============================================================================
# Product cut-out rules
# ============================================================================

@dataclass(frozen=True)
class CutRule:
    """Share of a stem volume going to one product for a diameter band."""
    species: str              # '*' for category defaults
    category: Optional[str]   # 'broadleaf' / 'conifer' for category defaults
    min_diam: int             # cm, inclusive
    max_diam: int             # cm, inclusive
    product: str
    pct_volume: float         # percentage of the stem volume

    def covers(self, diameter: int) -> bool:
        return self.min_diam <= diameter <= self.max_diam

    @classmethod
    def from_dict(cls, data: Dict) -> 'CutRule':
        category = data.get('category')
        return cls(
            species=str(data.get('species') or '*'),
            category=None if category is None else str(category),
            min_diam=int(data['min_diam']),
            max_diam=int(data['max_diam']),
            product=str(data['product']),
            pct_volume=float(data.get('pct_volume', 100.0)),
        )

    def to_dict(self) -> Dict:
        return {'species': self.species, 'category': self.category,
                'min_diam': self.min_diam, 'max_diam': self.max_diam,
                'product': self.product, 'pct_volume': self.pct_volume}


CUT_RULES_BROADLEAF: List[CutRule] = [
    # Large timber: mostly sawlog
    CutRule('*', 'broadleaf', 40, 999, 'BO', 70.0),
    CutRule('*', 'broadleaf', 40, 999, 'BI', 15.0),
    CutRule('*', 'broadleaf', 40, 999, 'BCh', 15.0),
    # Medium timber
    CutRule('*', 'broadleaf', 25, 39, 'BO', 40.0),
    CutRule('*', 'broadleaf', 25, 39, 'BI', 30.0),
    CutRule('*', 'broadleaf', 25, 39, 'BCh', 30.0),
    # Small timber
    CutRule('*', 'broadleaf', 7, 24, 'BI', 40.0),
    CutRule('*', 'broadleaf', 7, 24, 'BCh', 60.0),
    # Below merchantable size
    CutRule('*', 'broadleaf', 0, 6, 'BE', 100.0),
]

CUT_RULES_CONIFER: List[CutRule] = [
    CutRule('*', 'conifer', 35, 999, 'BO', 80.0),
    CutRule('*', 'conifer', 35, 999, 'BI', 15.0),
    CutRule('*', 'conifer', 35, 999, 'BE', 5.0),
    CutRule('*', 'conifer', 20, 34, 'BO', 50.0),
    CutRule('*', 'conifer', 20, 34, 'BI', 35.0),
    CutRule('*', 'conifer', 20, 34, 'BE', 15.0),
    CutRule('*', 'conifer', 7, 19, 'BI', 50.0),
    CutRule('*', 'conifer', 7, 19, 'PATE', 30.0),
    CutRule('*', 'conifer', 7, 19, 'BE', 20.0),
    CutRule('*', 'conifer', 0, 6, 'BE', 100.0),
]

CUT_RULES_SPECIES: List[CutRule] = [
    CutRule('DOUGLAS_VERT', None, 25, 999, 'BO', 80.0),
    CutRule('DOUGLAS_VERT', None, 25, 999, 'BI', 15.0),
    CutRule('DOUGLAS_VERT', None, 25, 999, 'BE', 5.0),
    # Maritime pine poles
    CutRule('PIN_MARITIME', None, 20, 30, 'POT', 60.0),
    CutRule('PIN_MARITIME', None, 20, 30, 'BI', 40.0),
    # Fence posts
    CutRule('ROBINIER', None, 10, 24, 'PIQ', 70.0),
    CutRule('ROBINIER', None, 10, 24, 'BCh', 30.0),
    CutRule('CHATAIGNIER', None, 10, 19, 'PIQ', 60.0),
    CutRule('CHATAIGNIER', None, 10, 19, 'BCh', 40.0),
]
