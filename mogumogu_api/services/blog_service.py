"""
SEO article generation.

Works through a fixed keyword list in order, one article per run, until
every keyword has a post.
"""
import logging
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mogumogu_api.core.errors import MalformedCompletion
from mogumogu_api.db.models.blog_post import BlogPost
from mogumogu_api.llm.provider import LLMProvider
from mogumogu_api.services.completion import BLOG_COMPLETION, invoke_completion
from mogumogu_api.services.completion_parser import parse_json_object
from mogumogu_api.services.prompt_builder import build_blog_prompt

logger = logging.getLogger(__name__)

KEYWORDS = [
    # Tier 1: high volume
    {"keyword": "離乳食 進め方", "slug": "how-to-start", "category": "basic", "stage": "", "title_hint": "離乳食の進め方完全ガイド【月齢別】"},
    {"keyword": "離乳食 食べない", "slug": "wont-eat", "category": "tips", "stage": "", "title_hint": "離乳食を食べてくれない時の原因と対処法"},
    {"keyword": "離乳食 いつから", "slug": "when-to-start", "category": "basic", "stage": "初期", "title_hint": "離乳食はいつから始める？開始のサイン5つ"},
    {"keyword": "離乳食 スケジュール", "slug": "schedule", "category": "stage", "stage": "", "title_hint": "月齢別の離乳食スケジュール表"},
    {"keyword": "離乳食 冷凍", "slug": "freezing", "category": "tips", "stage": "", "title_hint": "離乳食の冷凍保存テクニック大全"},
    {"keyword": "離乳食 初期 レシピ", "slug": "early-recipes", "category": "recipe", "stage": "初期", "title_hint": "離乳食初期（5〜6ヶ月）のおすすめレシピ"},
    {"keyword": "離乳食 中期 レシピ", "slug": "middle-recipes", "category": "recipe", "stage": "中期", "title_hint": "離乳食中期（7〜8ヶ月）のおすすめレシピ"},
    {"keyword": "離乳食 後期 レシピ", "slug": "late-recipes", "category": "recipe", "stage": "後期", "title_hint": "離乳食後期（9〜11ヶ月）のおすすめレシピ"},
    # Tier 2: mid volume
    {"keyword": "手づかみ食べ いつから", "slug": "finger-food", "category": "stage", "stage": "後期", "title_hint": "手づかみ食べはいつから？始め方ガイド"},
    {"keyword": "離乳食 アレルギー", "slug": "allergy-guide", "category": "allergy", "stage": "", "title_hint": "離乳食のアレルギーが心配な食材の進め方"},
    {"keyword": "10倍がゆ 作り方", "slug": "10x-porridge", "category": "recipe", "stage": "初期", "title_hint": "10倍がゆの作り方（炊飯器・レンジ・鍋）"},
    {"keyword": "離乳食 量 目安", "slug": "portion-guide", "category": "basic", "stage": "", "title_hint": "離乳食の量の目安【月齢別一覧表】"},
    {"keyword": "離乳食 2回食", "slug": "two-meals", "category": "stage", "stage": "中期", "title_hint": "離乳食の2回食への進め方とスケジュール"},
    {"keyword": "離乳食 3回食", "slug": "three-meals", "category": "stage", "stage": "後期", "title_hint": "離乳食の3回食への移行タイミングと献立例"},
    {"keyword": "離乳食 完了期 レシピ", "slug": "completion-recipes", "category": "recipe", "stage": "完了期", "title_hint": "離乳食完了期（12ヶ月〜）のおすすめレシピ"},
    {"keyword": "離乳食 卵 進め方", "slug": "egg-guide", "category": "food", "stage": "", "title_hint": "離乳食の卵の進め方【安全なステップ】"},
    # Tier 3: long tail, per ingredient
    {"keyword": "離乳食 バナナ いつから", "slug": "banana", "category": "food", "stage": "", "title_hint": "離乳食のバナナはいつから？月齢別の与え方"},
    {"keyword": "離乳食 豆腐 いつから", "slug": "tofu", "category": "food", "stage": "", "title_hint": "離乳食の豆腐はいつから？おすすめレシピ付き"},
    {"keyword": "離乳食 パン いつから", "slug": "bread", "category": "food", "stage": "", "title_hint": "離乳食にパンはいつから？食パンの選び方"},
    {"keyword": "離乳食 ヨーグルト いつから", "slug": "yogurt", "category": "food", "stage": "", "title_hint": "離乳食にヨーグルトはいつから？おすすめ種類"},
    {"keyword": "離乳食 鮭 いつから", "slug": "salmon", "category": "food", "stage": "", "title_hint": "離乳食に鮭はいつから？下処理と冷凍方法"},
    {"keyword": "離乳食 うどん いつから", "slug": "udon", "category": "food", "stage": "", "title_hint": "離乳食にうどんはいつから？茹で方のコツ"},
    {"keyword": "離乳食 納豆 いつから", "slug": "natto", "category": "food", "stage": "", "title_hint": "離乳食に納豆はいつから？粘りの処理方法"},
    {"keyword": "離乳食 トマト いつから", "slug": "tomato", "category": "food", "stage": "", "title_hint": "離乳食にトマトはいつから？皮の剥き方"},
    {"keyword": "離乳食 さつまいも レシピ", "slug": "sweet-potato", "category": "food", "stage": "", "title_hint": "離乳食のさつまいもレシピ【月齢別】"},
    {"keyword": "離乳食 にんじん レシピ", "slug": "carrot", "category": "food", "stage": "", "title_hint": "離乳食のにんじんレシピ【月齢別】"},
    {"keyword": "離乳食 かぼちゃ レシピ", "slug": "pumpkin", "category": "food", "stage": "", "title_hint": "離乳食のかぼちゃレシピ【月齢別】"},
    {"keyword": "離乳食 ほうれん草 いつから", "slug": "spinach", "category": "food", "stage": "", "title_hint": "離乳食にほうれん草はいつから？アク抜き方法"},
    {"keyword": "離乳食 ささみ いつから", "slug": "chicken-breast", "category": "food", "stage": "", "title_hint": "離乳食にささみはいつから？パサつかない調理法"},
    {"keyword": "離乳食 しらす いつから", "slug": "shirasu", "category": "food", "stage": "", "title_hint": "離乳食にしらすはいつから？塩抜き方法"},
]


def pending_keywords(db: Session) -> List[Dict[str, str]]:
    """Keywords without an article yet, in publishing order."""
    existing = {slug for (slug,) in db.query(BlogPost.slug).all()}
    return [kw for kw in KEYWORDS if kw["slug"] not in existing]


def generate_next_article(db: Session, llm: LLMProvider) -> Dict:
    """
    Generate and publish the article for the next unused keyword.

    A completion that is not the expected JSON object is published as raw
    Markdown under the keyword's title hint.

    Raises:
        UpstreamError, EmptyCompletion: The completion call failed
    """
    pending = pending_keywords(db)
    if not pending:
        return {"message": "All keyword articles have been generated", "total": len(KEYWORDS)}

    keyword = pending[0]
    system_prompt, user_message = build_blog_prompt(
        keyword["keyword"], keyword["title_hint"], keyword["category"], keyword["stage"],
    )
    raw_text = invoke_completion(
        llm,
        [{"role": "system", "content": system_prompt}, {"role": "user", "content": user_message}],
        BLOG_COMPLETION,
    )

    try:
        article = parse_json_object(raw_text)
    except MalformedCompletion:
        logger.warning(f"Blog completion was not JSON for slug={keyword['slug']}, publishing raw text")
        article = {}

    post = BlogPost(
        slug=keyword["slug"],
        title=article.get("title") or keyword["title_hint"],
        description=article.get("description") or f"{keyword['keyword']}について詳しく解説します。",
        content=article.get("content") or raw_text,
        category=keyword["category"],
        baby_stage=keyword["stage"] or None,
        published=True,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    remaining = len(pending) - 1
    logger.info(f"Blog article published: slug={post.slug}, remaining={remaining}")

    return {"success": True, "slug": post.slug, "title": post.title, "remaining": remaining}


def increment_view_count(session_factory, post_id: int) -> None:
    """Background task: bump a post's view counter; failures are only logged."""
    db = session_factory()
    try:
        db.query(BlogPost).filter(BlogPost.id == post_id).update(
            {BlogPost.views_count: BlogPost.views_count + 1},
            synchronize_session=False,
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"View count update failed for post_id={post_id}: {e}")
    finally:
        db.close()
