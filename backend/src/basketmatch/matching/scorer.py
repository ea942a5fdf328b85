"""Final match confidence from stage confidence and attribute agreement.

- brand bonus: +0.05 when the extracted brand is one of the product's brands
- unit bonus: +0.05 when the extracted quantity unit shares the product unit's dimension
- short phrase penalty: -0.1 when the matched phrase is under 3 characters
- confidence = clamp(stage + bonuses - penalty, 0..1); exact stays at 1.0
"""

from typing import Any, Dict, Optional

from ..catalog.models import CatalogProduct
from .normalizer import normalize
from .ports import ExtractedAttributes, MatchMethod
from .units import units_compatible

BRAND_BONUS = 0.05
UNIT_BONUS = 0.05
SHORT_PHRASE_PENALTY = 0.1
SHORT_PHRASE_LENGTH = 3


class ConfidenceScorer:
    """Adjust a stage confidence; the method tag is passed through untouched."""

    def score(
        self,
        stage_confidence: float,
        attributes: ExtractedAttributes,
        product: CatalogProduct,
        method: MatchMethod,
        phrase: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Calculate final confidence with all components.

        Args:
            stage_confidence: Base confidence assigned by the resolver stage
            attributes: Extracted brand/quantity/core phrase
            product: Matched product
            method: Resolver stage that produced the match
            phrase: Phrase the stage compared (defaults to the core phrase)

        Returns:
            Dict with confidence and features
        """
        if phrase is None:
            phrase = attributes.core_phrase

        b_brand = self._brand_bonus(attributes.brand, product)
        b_unit = self._unit_bonus(attributes, product)
        p_short = SHORT_PHRASE_PENALTY if len(phrase) < SHORT_PHRASE_LENGTH else 0.0

        if method == MatchMethod.EXACT:
            confidence = 1.0
        else:
            confidence = max(0.0, min(1.0, stage_confidence + b_brand + b_unit - p_short))

        return {
            "confidence": confidence,
            "features": {
                "S_stage": stage_confidence,
                "B_brand": b_brand,
                "B_unit": b_unit,
                "P_short": p_short,
            },
        }

    def _brand_bonus(self, brand: Optional[str], product: CatalogProduct) -> float:
        if not brand:
            return 0.0
        known = {normalize(b) for b in product.brands}
        return BRAND_BONUS if brand in known else 0.0

    def _unit_bonus(self, attributes: ExtractedAttributes, product: CatalogProduct) -> float:
        """Bonus when quantity and product units measure the same dimension.

        Missing units on either side earn nothing.
        """
        quantity = attributes.quantity
        if quantity is None or not quantity.unit:
            return 0.0
        return UNIT_BONUS if units_compatible(quantity.unit, product.unit) else 0.0
