"""OpenAI client for listing generation and photo staging."""

import base64
from collections.abc import Sequence
from dataclasses import dataclass

from openai import AsyncOpenAI

from listing_studio.services.generation import ContentPart, GenerationClient
from listing_studio.services.prompts import ImageAttachment


@dataclass
class OpenAIListingClient(GenerationClient):
    """Generation client backed by the OpenAI Responses and Images APIs."""

    client: AsyncOpenAI
    model: str
    image_model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        *,
        model: str,
        image_model: str,
        reasoning_effort: str | None,
        store: bool,
        timeout_seconds: float,
    ) -> "OpenAIListingClient":
        """Create an OpenAI listing client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key, timeout=timeout_seconds),
            model=model,
            image_model=image_model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def generate_structured(
        self,
        *,
        prompt: str,
        images: Sequence[ImageAttachment],
        schema: dict[str, object],
        schema_name: str,
    ) -> str:
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        content.extend(
            {"type": "input_image", "image_url": _to_data_url(image)}
            for image in images
        )
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text

    async def edit_image(
        self, *, prompt: str, image: ImageAttachment
    ) -> list[ContentPart]:
        """Call OpenAI Images edit and return the produced images as parts."""
        extension = image.mime_type.split("/")[-1]
        response = await self.client.images.edit(
            model=self.image_model,
            image=(f"photo.{extension}", image.data, image.mime_type),
            prompt=prompt,
        )
        output_format = getattr(response, "output_format", None) or "png"
        parts: list[ContentPart] = []
        for item in response.data or []:
            if item.b64_json:
                parts.append(
                    ContentPart(
                        mime_type=f"image/{output_format}",
                        data=base64.b64decode(item.b64_json),
                    )
                )
        return parts

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _to_data_url(image: ImageAttachment) -> str:
    """Convert an attachment to a base64 data URL for image input."""
    encoded = base64.b64encode(image.data).decode("utf-8")
    return f"data:{image.mime_type};base64,{encoded}"
