"""Prompt enhancement: casual description in, professional prompt out."""

import json

from pydantic import ValidationError

from ..providers.gemini import GeminiClient
from ..models.schemas import EnhancementResult
from ..utils.logger import get_logger
from ..utils.errors import EnhancementFailure, ParseFailure

logger = get_logger(__name__)


PROMPT_ENGINEER_SYSTEM_INSTRUCTION = """
Você é uma Inteligência Artificial profissional especializada em criar IMAGENS e VÍDEOS de alta qualidade.

Funções da IA:
1. Gerar FOTOS realistas, cinematográficas ou estilizadas.
2. Gerar VÍDEOS curtos (3–10 segundos) com cenas de cinema, comerciais, produtos, pessoas, animais e ambientes.
3. Entender descrições simples e transformar em cenas profissionais.
4. Ajustar iluminação, composição, resolução e estilo automaticamente.
5. Criar versões alternativas melhoradas de uma mesma cena.

REGRAS:
- Sempre melhore a descrição do usuário.
- Nunca entregue "prompt simples". Sempre gere um prompt completo, detalhado e profissional (preferencialmente em Inglês para melhor compatibilidade com modelos de imagem/vídeo, mas mantenha o contexto cultural se necessário).
- A imagem/vídeo deve sempre ser hiper-realista ou cinematográfico.
- Inclua detalhes de iluminação, câmera, textura, ambiente e estilo visual.
- Quando o usuário pedir algo com rosto humano, mantenha traços naturais.
- Nunca copie imagens reais — sempre gere conteúdo original.
- Ofereça 2 variações melhores do que a descrição inicial.
"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "prompt_final": {
            "type": "STRING",
            "description": "O prompt final altamente detalhado e otimizado.",
        },
        "variacao_1": {
            "type": "STRING",
            "description": "Uma variação criativa alternativa.",
        },
        "variacao_2": {
            "type": "STRING",
            "description": "Uma segunda variação criativa alternativa.",
        },
        "suggestions": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Sugestões de melhoria (estilo, luz, angulo).",
        },
    },
    "required": ["prompt_final", "variacao_1", "variacao_2", "suggestions"],
}


def extract_text(response: dict) -> str:
    """Concatenate the text parts of the first candidate."""
    candidates = response.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class PromptEnhancer:
    """Rewrites user prompts into detailed cinematic generation prompts."""

    def __init__(self, gemini_client: GeminiClient, model: str = "gemini-2.5-flash"):
        """
        Initialize prompt enhancer.

        Args:
            gemini_client: Gemini API client
            model: Text model used for the rewrite
        """
        self.client = gemini_client
        self.model = model

    def build_payload(self, user_input: str) -> dict:
        """Request body: user text, fixed system instruction, JSON schema."""
        return {
            "contents": [{"role": "user", "parts": [{"text": user_input}]}],
            "systemInstruction": {"parts": [{"text": PROMPT_ENGINEER_SYSTEM_INSTRUCTION}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def enhance(self, user_input: str, api_key: str) -> EnhancementResult:
        """
        Enhance a user prompt.

        Args:
            user_input: Non-empty casual description
            api_key: Currently selected API key

        Returns:
            EnhancementResult

        Raises:
            EnhancementFailure: If the backend returns no text
            ParseFailure: If the text is not JSON matching the schema
        """
        logger.info(
            "Enhancing prompt",
            extra={"model": self.model, "original_prompt": user_input[:200]}
        )

        response = await self.client.generate_content(
            self.model, self.build_payload(user_input), api_key
        )

        text = extract_text(response)
        if not text:
            logger.error("Enhancement returned no text", extra={"model": self.model})
            raise EnhancementFailure("Falha ao gerar o prompt aprimorado.")

        try:
            result = EnhancementResult.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error(
                "Enhancement response did not match schema",
                extra={"model": self.model, "error": str(e), "raw": text[:500]}
            )
            raise ParseFailure(f"Resposta de aprimoramento inválida: {e}")

        logger.info(
            "Prompt enhanced",
            extra={
                "model": self.model,
                "enhanced_prompt": result.final_prompt[:500],
                "suggestions": len(result.suggestions),
            }
        )

        return result
