"""
中英文国际化模块
所有页面通过 t() 获取翻译文本
"""
import streamlit as st

TRANSLATIONS = {
    # ---- 通用 ----
    "backend_connected": {"zh": "后端已连接", "en": "Backend connected"},
    "backend_disconnected": {"zh": "后端未连接 - 请先启动 FastAPI", "en": "Backend not connected - please start FastAPI first"},
    "engine_loading": {"zh": "正在加载 Python 执行环境...", "en": "Loading Python environment..."},
    "engine_failed": {"zh": "执行环境加载失败，请检查 numpy / pandas / scikit-learn 是否已安装", "en": "Failed to load the Python environment. Check that numpy / pandas / scikit-learn are installed."},
    "no_dataset": {"zh": "还没有数据集，请先在首页上传 CSV", "en": "No dataset yet. Upload a CSV on the home page first."},
    "request_failed": {"zh": "请求失败", "en": "Request failed"},
    "session": {"zh": "Session", "en": "Session"},
    "new_session": {"zh": "🔄 新建 Session", "en": "🔄 New Session"},
    "session_name": {"zh": "Session 名称（可选）", "en": "Session Name (optional)"},

    # ---- 首页 ----
    "home_title": {"zh": "🔁 Loopyter", "en": "🔁 Loopyter"},
    "home_subtitle": {"zh": "上传数据 → 写代码或让 AI 生成 → 自动识别模型指标 → 排行榜", "en": "Upload data → write code or let AI generate it → metrics detected automatically → leaderboard"},
    "upload_csv": {"zh": "上传 CSV", "en": "Upload CSV"},
    "dataset_loaded": {"zh": "数据集已加载，代码里可以用以下路径读取", "en": "Dataset loaded. Read it in code from any of these paths"},
    "parse_failed": {"zh": "解析失败", "en": "Parse failed"},
    "preview": {"zh": "数据预览", "en": "Preview"},
    "column_stats": {"zh": "列统计", "en": "Column Stats"},
    "distributions": {"zh": "数值列分布", "en": "Numeric Distributions"},
    "rows_cols": {"zh": "{rows} 行 × {cols} 列", "en": "{rows} rows × {cols} columns"},
    "ai_analyze_data": {"zh": "🧠 AI 分析数据", "en": "🧠 Analyze with AI"},
    "ai_clean_data": {"zh": "🧹 AI 清洗建议", "en": "🧹 Cleaning Suggestions"},
    "cleaning_feedback": {"zh": "补充说明（可选）", "en": "Extra instructions (optional)"},
    "insights": {"zh": "发现", "en": "Insights"},
    "ml_recommendations": {"zh": "建模建议", "en": "ML Recommendations"},
    "suggested_charts": {"zh": "推荐图表", "en": "Suggested Charts"},
    "quality_score": {"zh": "数据质量", "en": "Data Quality"},
    "warnings": {"zh": "注意", "en": "Warnings"},
    "analyzing": {"zh": "分析中...", "en": "Analyzing..."},

    # ---- Notebook ----
    "notebook_title": {"zh": "📓 Notebook", "en": "📓 Notebook"},
    "add_code": {"zh": "＋ 代码", "en": "＋ Code"},
    "add_markdown": {"zh": "＋ Markdown", "en": "＋ Markdown"},
    "run_all": {"zh": "▶▶ 全部运行", "en": "▶▶ Run All"},
    "clear_outputs": {"zh": "清空输出", "en": "Clear Outputs"},
    "run": {"zh": "▶ 运行", "en": "▶ Run"},
    "delete": {"zh": "删除", "en": "Delete"},
    "move_up": {"zh": "上移", "en": "Move up"},
    "move_down": {"zh": "下移", "en": "Move down"},
    "to_markdown": {"zh": "转为 Markdown", "en": "To Markdown"},
    "to_code": {"zh": "转为代码", "en": "To Code"},
    "running": {"zh": "运行中...", "en": "Running..."},
    "model_detected": {"zh": "识别到模型", "en": "Model detected"},
    "save_run": {"zh": "💾 保存 Run", "en": "💾 Save Run"},
    "run_saved": {"zh": "已保存！", "en": "Saved!"},
    "export_model": {"zh": "⬇ 导出 model (pickle)", "en": "⬇ Export model (pickle)"},
    "download_code": {"zh": "⬇ 下载全部代码", "en": "⬇ Download all code"},

    # ---- Runs ----
    "runs_title": {"zh": "🏆 排行榜", "en": "🏆 Leaderboard"},
    "live_leaderboard": {"zh": "本次 notebook 识别到的模型", "en": "Models detected in this notebook"},
    "saved_leaderboard": {"zh": "已保存的 Runs", "en": "Saved Runs"},
    "best_run": {"zh": "最佳", "en": "Best"},
    "latest_run": {"zh": "最新", "en": "Latest"},
    "total_models": {"zh": "模型数", "en": "Models"},
    "no_detected": {"zh": "还没有识别到模型，运行一个会打印指标的 cell 试试", "en": "No models detected yet. Run a cell that prints metrics."},
    "no_saved": {"zh": "还没有保存的 Run", "en": "No saved runs yet."},
    "confusion_matrix": {"zh": "混淆矩阵", "en": "Confusion Matrix"},
    "actual": {"zh": "真实", "en": "Actual"},
    "predicted": {"zh": "预测", "en": "Predicted"},
    "refresh": {"zh": "🔄 刷新", "en": "🔄 Refresh"},
    "improve_latest": {"zh": "✨ AI 改进最新模型", "en": "✨ Improve latest model"},
    "improve_inserted": {"zh": "改进后的代码已插入 Notebook", "en": "Improved code inserted into the notebook"},
    "analyze_run": {"zh": "🔍 分析这个模型", "en": "🔍 Analyze this model"},
    "select_run": {"zh": "选择模型", "en": "Select a model"},
    "recommendation": {"zh": "建议", "en": "Recommendation"},
    "feature_experiments_loaded": {"zh": "个特征工程实验已加入模型助手页面", "en": "feature experiments queued on the Model Builder page"},

    # ---- Model Chat ----
    "chat_title": {"zh": "🤖💬 模型助手", "en": "🤖💬 Model Builder"},
    "chat_welcome": {"zh": "告诉我你想预测什么，我会生成代码、插入 Notebook 并运行。", "en": "Tell me what you want to predict. I will write the code, insert it into the notebook and run it."},
    "chat_input_placeholder": {"zh": "例如：用 price 以外的列预测 price", "en": "e.g., Predict price from the other columns"},
    "thinking": {"zh": "思考中...", "en": "Thinking..."},
    "code_inserted": {"zh": "代码已插入并运行", "en": "Code inserted and executed"},
    "analyze_model": {"zh": "🔍 分析最新模型", "en": "🔍 Analyze latest model"},
    "suggest_experiments": {"zh": "💡 生成实验", "en": "💡 Suggest experiments"},
    "target_column": {"zh": "目标列", "en": "Target column"},
    "run_experiments": {"zh": "▶ 运行全部实验", "en": "▶ Run all experiments"},
    "stop_experiments": {"zh": "⏹ 停止", "en": "⏹ Stop"},
    "experiments": {"zh": "实验", "en": "Experiments"},
    "experiment_ranking": {"zh": "实验排名", "en": "Experiment Ranking"},
    "no_metrics_found": {"zh": "未找到指标", "en": "no metrics found"},
    "quality": {"zh": "质量", "en": "Quality"},
    "strengths": {"zh": "优点", "en": "Strengths"},
    "weaknesses": {"zh": "不足", "en": "Weaknesses"},
    "suggestions": {"zh": "建议", "en": "Suggestions"},
}


def init_language():
    """初始化语言设置，在每个页面开头调用"""
    if "lang" not in st.session_state:
        st.session_state.lang = "zh"


def language_selector():
    """在侧边栏显示语言切换按钮"""
    init_language()
    with st.sidebar:
        lang = st.radio(
            "Language / 语言",
            options=["zh", "en"],
            format_func=lambda x: "中文" if x == "zh" else "English",
            index=0 if st.session_state.lang == "zh" else 1,
            key="lang_radio",
            horizontal=True,
        )
        if lang != st.session_state.lang:
            st.session_state.lang = lang
            st.rerun()


def t(key: str, **kwargs) -> str:
    """获取翻译文本"""
    init_language()
    lang = st.session_state.get("lang", "zh")
    text = TRANSLATIONS.get(key, {}).get(lang, key)
    if kwargs:
        text = text.format(**kwargs)
    return text
