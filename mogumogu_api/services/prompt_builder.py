"""
Prompt construction for the AI features.

Pure functions: the same inputs always produce the same prompt text, so
prompts can be asserted on in tests. Prompts are written in Japanese, the
language the app and its users speak.
"""
from typing import Dict, Iterable, List, Optional, Tuple

LIST_SEPARATOR = "、"
NONE_LABEL = "なし"
MAX_HISTORY_TURNS = 20

Messages = List[Dict[str, str]]


def format_list(items: Optional[Iterable[str]], empty_label: str = NONE_LABEL) -> str:
    """
    Join list input with the stable separator.

    Blank items are dropped; an empty result renders as ``empty_label``.
    """
    cleaned = [str(item).strip() for item in (items or []) if item is not None and str(item).strip()]
    if not cleaned:
        return empty_label
    return LIST_SEPARATOR.join(cleaned)


# ============================================
# AI consultation
# ============================================

def build_consultation_system_prompt(baby_month: int, allergens: Optional[List[str]]) -> str:
    return f"""あなたは離乳食と育児の専門家（管理栄養士・保育士資格保持）です。
ママ・パパからの離乳食や育児に関する相談に、やさしく丁寧に回答してください。

赤ちゃんの情報:
- 月齢: {baby_month}ヶ月
- アレルギー除外食材: {format_list(allergens)}

回答のルール:
- 日本語で回答
- 簡潔で分かりやすい表現を使う（200〜400文字程度）
- 具体的なアドバイスや例を含める
- 月齢に適した食材・調理法を提案
- アレルギーに配慮した回答をする
- 医療的な判断が必要な場合は「かかりつけ医に相談してください」と伝える
- 絵文字を適度に使って親しみやすい回答にする"""


def build_consultation_messages(
    message: str,
    baby_month: int,
    allergens: Optional[List[str]] = None,
    history: Optional[List[Dict[str, str]]] = None,
) -> Messages:
    """System prompt, the last MAX_HISTORY_TURNS user/assistant turns, then the question."""
    messages: Messages = [
        {"role": "system", "content": build_consultation_system_prompt(baby_month, allergens)}
    ]

    for turn in (history or [])[-MAX_HISTORY_TURNS:]:
        role = turn.get("role")
        content = turn.get("content")
        if role in ("user", "assistant") and isinstance(content, str):
            messages.append({"role": role, "content": content})

    messages.append({"role": "user", "content": message.strip()})
    return messages


# ============================================
# Recipe generation
# ============================================

RECIPE_GENERATION_FORMAT = """{
  "recipes": [
    {
      "title": "レシピ名",
      "catch_copy": "キャッチコピー（例: ふわふわ食感で笑顔に）",
      "description": "このレシピのポイント",
      "baby_month_range": "対象月齢",
      "cooking_time": "調理時間",
      "ingredients": ["食材名 分量", ...],
      "steps": ["手順1", "手順2", ...],
      "nutrition_info": {
        "main": "主な栄養素",
        "calories_approx": "おおよそのカロリー"
      },
      "tips": "調理のコツ",
      "storage": "保存方法と保存期間",
      "freezable": true,
      "difficulty": "簡単/普通/やや手間"
    }
  ]
}"""


def build_recipe_generation_prompt(
    baby_month: int,
    allergens: Optional[List[str]] = None,
    preference: Optional[str] = None,
    meal_type: Optional[str] = None,
    count: int = 3,
) -> Tuple[str, str]:
    """Return (system_prompt, user_message) for original recipe generation."""
    system_prompt = f"""あなたは管理栄養士資格を持つ離乳食の専門家です。
指定された条件に合わせて、オリジナルの離乳食レシピを
{count}品 考案してください。

条件:
- 赤ちゃんの月齢: {baby_month}ヶ月
- 除外アレルゲン: {format_list(allergens)}
- 好み: {preference or '特になし'}
- 食事タイプ: {meal_type or '指定なし'}

必ず以下のJSON形式で回答:
{RECIPE_GENERATION_FORMAT}"""

    user_message = (
        f"{baby_month}ヶ月の赤ちゃん向けに"
        f"{meal_type + 'の' if meal_type else ''}"
        f"離乳食レシピを{count}品お願いします。"
        f"{'好み: ' + preference + '。' if preference else ''}"
        "バリエーション豊かに提案してください。"
    )
    return system_prompt, user_message


# ============================================
# Ingredient-based recipe search
# ============================================

RECIPE_SEARCH_SYSTEM_PROMPT = """あなたは離乳食の専門家です。
ユーザーが入力した食材を使った離乳食レシピを提案してください。

ルール:
1. 赤ちゃんの月齢に適した硬さ・大きさにすること
2. 指定されたアレルゲン食材は絶対に使わないこと
3. 調味料は月齢に応じて最小限にすること
4. 栄養バランスを考慮すること
5. 調理時間は15分以内を目安にすること

月齢→ステージ対応:
- 5〜6ヶ月 → ゴックン期（ペースト状、1食材ずつ）
- 7〜8ヶ月 → モグモグ期（舌でつぶせる硬さ、2〜3食材）
- 9〜11ヶ月 → カミカミ期（歯ぐきでつぶせる硬さ、味付け薄め）
- 12〜18ヶ月 → パクパク期（歯ぐきで噛める硬さ、大人の取り分けOK）

必ず以下のJSON形式で回答してください:
{
  "recipes": [
    {
      "title": "レシピ名",
      "emoji": "🥕（メイン食材に合った絵文字1つ）",
      "stage": "モグモグ期（上記の対応表から選ぶ）",
      "time": 10,
      "difficulty": 1,
      "ingredients": ["にんじん 30g", "豆腐 40g", "だし汁 大さじ2"],
      "steps": ["にんじんを柔らかく茹でてみじん切りにする", "..."],
      "nutrition": { "kcal": 50, "protein": 2.0, "iron": 0.5, "vitA": "◎", "vitC": "○" },
      "tip": "にんじんは電子レンジ加熱でもOK",
      "tags": ["にんじん", "豆腐"]
    }
  ]
}

注意:
- emoji: メイン食材の絵文字を1つ
- stage: ゴックン期/モグモグ期/カミカミ期/パクパク期 のいずれか
- time: 数値（分）
- difficulty: 1（簡単）、2（普通）、3（やや手間）の数値
- nutrition: kcal(数値), protein(数値g), iron(数値mg), vitA(◎/○/△/−), vitC(◎/○/△/−)
- 各レシピは必ず異なるタイトルにすること"""


def build_recipe_search_prompt(
    ingredients: List[str],
    baby_month: int,
    allergens: Optional[List[str]] = None,
    count: int = 5,
    exclude_titles: Optional[List[str]] = None,
) -> Tuple[str, str]:
    """Return (system_prompt, user_message) for ingredient-based search."""
    lines = [
        f"食材: {format_list(ingredients)}",
        f"赤ちゃんの月齢: {baby_month}ヶ月",
        f"除外アレルゲン: {format_list(allergens)}",
        f"{count}品のレシピを提案してください。バリエーション豊かにお願いします。",
    ]
    if exclude_titles:
        lines.append(f"以下のレシピ名は既出なので別のレシピにしてください: {format_list(exclude_titles)}")

    return RECIPE_SEARCH_SYSTEM_PROMPT, "\n".join(lines)


# ============================================
# Blog article generation
# ============================================

BLOG_SYSTEM_PROMPT = """あなたは離乳食の専門家です。科学的に正確で、厚生労働省の「授乳・離乳の支援ガイド」に準拠した記事を書いてください。

ルール:
- ターゲット読者: 初めての離乳食に不安を感じているママ・パパ
- トーン: 優しく寄り添う。「〜してくださいね」「大丈夫ですよ」
- 文字数: 2,500〜3,500字
- 見出しには ## と ### を使用（Markdown形式）
- 表を使って分かりやすく（月齢別の量の目安など）
- 「個人差があるので心配な場合はかかりつけ医に相談しましょう」を必ず入れる
- 画像は使わない。テキストと表で構成
- 最後に「## まとめ」セクションを入れる"""


def build_blog_prompt(keyword: str, title_hint: str, category: str, stage: str = "") -> Tuple[str, str]:
    lines = [
        "以下のキーワードで離乳食のSEO記事を書いてください。",
        "",
        f"キーワード: {keyword}",
        f"記事タイトルの方向性: {title_hint}",
        f"カテゴリ: {category}",
    ]
    if stage:
        lines.append(f"対象ステージ: {stage}")
    lines += [
        "",
        "以下のJSON形式のみで回答してください（JSON以外は出力しないこと）:",
        "{",
        '  "title": "SEOに最適化された記事タイトル（キーワードを含む、40字以内）",',
        '  "description": "記事の説明文（120字以内、検索結果のスニペットに表示される）",',
        '  "content": "Markdown形式の記事本文（2500〜3500字）"',
        "}",
    ]
    return BLOG_SYSTEM_PROMPT, "\n".join(lines)
