"""
公开评论接口 POST /api/advice-comment
"""
from board.http import error_response, json_response, parse_request_body
from board.models import append_comment


def handle(context, board):
    try:
        body = parse_request_body(context.req)
        advice_id = body.get('adviceId')
        author = body.get('author')
        content = body.get('content')

        if not advice_id or not isinstance(content, str) or not content.strip():
            return error_response(context, '缺少必要参数', 400)

        existing = board.advices.get_json(advice_id)
        if not isinstance(existing, dict):
            return error_response(context, '建言不存在', 404)

        append_comment(
            existing,
            content.strip(),
            author.strip() if isinstance(author, str) and author.strip() else None
        )
        board.advices.put_json(advice_id, existing)
        context.log(f'[COMMENT] {advice_id} 新增评论，共 {len(existing["comments"])} 条')
        return json_response(context, {'success': True})

    except ValueError as e:
        return error_response(context, str(e), 400)
    except Exception as e:
        context.error(f'[COMMENT] 提交失败: {str(e)}')
        return error_response(context, '提交失败', 500)
