"""Field preservation for refined listings."""

from listing_studio.domain.listings import ListingResult


def merge_result(
    new_result: ListingResult,
    prior_result: ListingResult | None,
    skips_image_analysis: bool,
) -> ListingResult:
    """Carry location and nearby places forward when photos were not re-analysed.

    The generation service is asked to return these fields unchanged, but its
    answer is not trusted: the prior values always win on the refinement path.
    """
    if not skips_image_analysis or prior_result is None:
        return new_result
    return new_result.model_copy(
        update={
            "location": prior_result.location,
            "nearby_pois": prior_result.nearby_pois,
        }
    )
