"""
LLM client backed by AWS Bedrock (``converse`` API).

Only used when AI_PROVIDER=bedrock. Callers must treat every failure as
recoverable; see ``summary_service.BedrockCareAI``.
"""

import asyncio
import json
import boto3
from vitalguard.config import Settings


class BedrockLLM:
    def __init__(self, settings: Settings):
        self.model_id = settings.aws_bedrock_model_id
        self.region = settings.aws_region
        self.access_key_id = settings.aws_access_key_id
        self.secret_access_key = settings.aws_secret_access_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "bedrock-runtime",
                region_name=self.region,
                aws_access_key_id=self.access_key_id or None,
                aws_secret_access_key=self.secret_access_key or None,
            )
        return self._client

    async def generate(self, prompt: str, system: str = "", temperature: float = 0.7) -> str:
        system_blocks = [{"text": system}] if system else []
        messages = [{"role": "user", "content": [{"text": prompt}]}]

        response = await asyncio.to_thread(
            self.client.converse,
            modelId=self.model_id,
            messages=messages,
            system=system_blocks,
            inferenceConfig={"temperature": temperature, "maxTokens": 2048},
        )
        return response["output"]["message"]["content"][0]["text"]

    async def generate_structured(self, prompt: str, system: str = "") -> dict:
        raw = await self.generate(prompt, system, temperature=0.3)
        try:
            start = raw.find("{")
            end = raw.rfind("}") + 1
            if start >= 0 and end > start:
                return json.loads(raw[start:end])
        except json.JSONDecodeError:
            pass
        return {"raw_response": raw}
