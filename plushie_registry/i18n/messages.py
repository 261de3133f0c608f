"""User-facing message table."""

from __future__ import annotations

from plushie_registry.errors import ErrorCode, RegistryError

MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_REQUIRED: "認証が必要です。ログインしてください。",
    ErrorCode.AUTH_FAILED: "認証に失敗しました",
    ErrorCode.INVALID_CREDENTIALS: "メールアドレスまたはパスワードが正しくありません",
    ErrorCode.EMAIL_TAKEN: "このメールアドレスは既に登録されています",
    ErrorCode.EMAIL_NOT_CONFIRMED: "メールアドレスの確認が完了していません。届いたメールを確認してください。",
    ErrorCode.WEAK_PASSWORD: "パスワードが短すぎるか、推測されやすいものです",
    ErrorCode.REGISTRATION_CLOSED: "新規登録は現在受け付けていません（登録ユーザー数が上限に達しました）",
    ErrorCode.TOKEN_EXPIRED: "トークンの有効期限が切れています。再度ログインしてください。",
    ErrorCode.TOKEN_MISSING: "認証トークンが見つかりません。ログインしてください。",
    ErrorCode.INVALID_INPUT: "入力内容を確認してください",
    ErrorCode.NAME_REQUIRED: "名前は必須です",
    ErrorCode.INVALID_ID: "無効なIDです",
    ErrorCode.NOT_FOUND: "ぬいぐるみが見つかりませんでした",
    ErrorCode.FORBIDDEN: "この操作は許可されていません",
    ErrorCode.RATE_LIMITED: "リクエストが多すぎます。しばらくしてから再度お試しください。",
    ErrorCode.CHAT_FAILED: "チャットの生成に失敗しました",
    ErrorCode.SERVER_MISCONFIGURED: "サーバー設定エラーが発生しました。",
    ErrorCode.CONFIG_MISSING: "クライアントの設定が不足しています。環境変数を確認してください。",
    ErrorCode.SERVER_ERROR: "サーバーでエラーが発生しました",
    ErrorCode.NETWORK: "サーバーに接続できませんでした",
    ErrorCode.TIMEOUT: "サーバーからの応答がタイムアウトしました",
    ErrorCode.IMAGE_DECODE_FAILED: "画像を読み込めませんでした。別のファイルを選択してください。",
    ErrorCode.IMAGE_ENCODE_FAILED: "画像の変換に失敗しました",
    ErrorCode.FILE_UNREADABLE: "ファイルを読み書きできませんでした。パスを確認してください。",
    ErrorCode.UNKNOWN: "エラーが発生しました",
}


def message_for(code: ErrorCode) -> str:
    """Return the message registered for ``code``."""

    return MESSAGES.get(code, MESSAGES[ErrorCode.UNKNOWN])


def translate(exc: BaseException) -> str:
    """Turn any exception into text suitable for showing to the end user."""

    if isinstance(exc, RegistryError):
        return message_for(exc.code)
    return MESSAGES[ErrorCode.UNKNOWN]
